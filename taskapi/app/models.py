from sqlalchemy import Boolean, Column, String, Text

from .db import Base

TASK_TABLE = "tasks"


class Task(Base):
    __tablename__ = TASK_TABLE

    id = Column(String(24), primary_key=True, index=True)
    completed = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=False)
    duedate = Column(String(64), nullable=False, default="")
    title = Column(String(255), nullable=False)
