from sqlalchemy import Boolean, Column, String, false

from .db import Base


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(255), primary_key=True)
    title = Column(String(255), nullable=False)
    state = Column(Boolean, default=False, server_default=false())
