"""
SQLAlchemy database models.

The risk engine itself never writes; the API layer stores each assessment it
serves here so history and statistics can be shown later.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func
from .db import Base


class Prediction(Base):
    """
    One served risk assessment.

    ``weather`` holds the narrative shown to the user, which for time-travel
    requests is the seasonal outlook rather than live conditions.
    """
    __tablename__ = "flight_predictions"

    id = Column(Integer, primary_key=True)
    airport = Column(String(8), nullable=False, index=True)
    risk_level = Column(String, nullable=False)  # Low | Medium | High
    risk_score = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False)
    weather = Column(String, nullable=True)
    is_time_travel = Column(Boolean, default=False)
    target_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "airport": self.airport,
            "riskLevel": self.risk_level,
            "riskScore": self.risk_score,
            "confidence": self.confidence,
            "weather": self.weather,
            "isTimeTravel": self.is_time_travel,
            "targetTime": self.target_time.isoformat() if self.target_time else None,
            "predictionTime": self.created_at.isoformat() if self.created_at else None,
        }
