from sqlalchemy import Column, DateTime, Integer, String, Text
from app.core.database import Base

class AdminAction(Base):
    __tablename__ = "admin_actions"

    # Autoincrement id doubles as the append order of the log
    sequence = Column(Integer, primary_key=True, autoincrement=True)
    registration_number = Column(String(16), nullable=False, index=True)
    action = Column(String(10), nullable=False)
    reason = Column(Text, nullable=True)
    action_date = Column(DateTime, nullable=False)
    admin_id = Column(String(50), nullable=False)
