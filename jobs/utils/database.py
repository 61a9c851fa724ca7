"""
Database setup shared by queued tasks.

Worker threads run their own event loops, so task sessions use an
engine without a pool.
"""

from app.config.database import create_engine, create_session_maker

task_engine = create_engine(pooled=False)
task_session_maker = create_session_maker(task_engine)
