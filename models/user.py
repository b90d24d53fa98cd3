from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text, JSON


class User(BaseModel, Base):
    __tablename__ = "users"
    # username/email/full_name are stored trimmed and lowercased by the repository
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    avatar = Column(String(1024), nullable=False)
    cover_image = Column(String(1024), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    # the one refresh token currently accepted for this user; NULL when logged out
    refresh_token = Column(Text, nullable=True)
    watch_history = Column(JSON, nullable=False, default=list)
