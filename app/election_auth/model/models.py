from sqlalchemy import Column, Integer, String
from sqlalchemy.types import Enum
from werkzeug.security import check_password_hash

from app.database import Base
from app.election_auth.model.enums import UserRole


class User(Base):

    __tablename__ = "auth_user"

    id = Column(Integer, primary_key=True)

    # Id for token
    public_id = Column(String(200), nullable=False, unique=True)

    email = Column(String(200), nullable=False, unique=True)
    password = Column(String(200), nullable=False)

    role = Column(Enum(UserRole), nullable=False, default=UserRole.admin)

    def __repr__(self):
        return '<User %r>' % self.id

    def get_id(self):
        return self.id

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password, password)
