from sqlalchemy import Column, Integer, String, Float, BigInteger, Text, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # plaintext, see auth.py
    role = Column(String, nullable=False)


class TrainingImage(Base):
    __tablename__ = "training_images"
    id = Column(Integer, primary_key=True, index=True)
    image_url = Column(String, nullable=False)
    items = relationship(
        "TrainingItem",
        back_populates="image",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TrainingItem.id",
    )


class TrainingItem(Base):
    __tablename__ = "training_items"
    id = Column(Integer, primary_key=True, index=True)
    image_id = Column(Integer, ForeignKey("training_images.id", ondelete="CASCADE"), nullable=False)
    prompt = Column(String, nullable=False)
    correct_answer = Column(String, nullable=False)
    image = relationship("TrainingImage", back_populates="items")


class TrainingAttempt(Base):
    __tablename__ = "training_attempts"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False, index=True)  # no foreign key
    timestamp = Column(BigInteger, nullable=False)  # epoch milliseconds
    results = Column(Text, nullable=False)  # serialized JSON
    total_time = Column(Integer, nullable=False)
    total_items = Column(Integer, nullable=False)
    correct_items = Column(Integer, nullable=False)
    accuracy = Column(Float, nullable=False)
