"""
User Model
"""
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from taskmanager.database import Base
from taskmanager.utils.identifiers import new_id
from taskmanager.utils.time_utils import utc_now


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda roles: [r.value for r in roles], name="user_role"),
        default=UserRole.USER,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    created_tasks = relationship(
        "Task",
        back_populates="creator",
        foreign_keys="Task.created_by",
        cascade="all, delete-orphan",
    )
    assigned_tasks = relationship("Task", back_populates="assignee", foreign_keys="Task.assigned_to")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
