from sqlalchemy import JSON, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base, UTCDateTime, utcnow


# Role model
class Role(Base):
    __tablename__ = "roles"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)  # one of RoleName
    permissions = Column(JSON, nullable=False, default=list)
    users = relationship("User", back_populates="role")


# User model
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, index=True)
    email = Column(String, unique=True, nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    role = relationship("Role", back_populates="users", lazy="joined")
    contents = relationship("Content", back_populates="author")

    @property
    def role_name(self) -> str | None:
        return self.role.name if self.role is not None else None
