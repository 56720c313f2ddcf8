from fastapi import FastAPI, Depends, HTTPException

from sqlalchemy import select, delete, func

from .aggregator import RiskAggregator
from .cache import TTLPolicy
from .config import settings
from .db import engine, Base, get_session
from .errors import InvalidInput
from .feeds import OpenWeatherFeed, WildlifeFeed
from .models import Prediction
from .weather import WeatherProvider
from .wildlife import WildlifeHazardProvider

import json
import logging
import pathlib
import datetime

logger = logging.getLogger(__name__)

app = FastAPI(title="Airport Risk Assessment")

# ---------- Airport catalog (read-only) ----------
CATALOG_PATH = pathlib.Path(__file__).resolve().parents[0] / "catalog" / "airports.json"
with open(CATALOG_PATH, "r", encoding="utf-8") as f:
    RAW = json.load(f)

AIRPORTS = RAW["airports"]
AIRPORT_BY_CODE = {a["code"]: a for a in AIRPORTS}

# ---------- Risk engine ----------
weather_provider = WeatherProvider(
    feed=OpenWeatherFeed(
        settings.WEATHER_API_URL,
        settings.WEATHER_API_KEY,
        timeout=settings.WEATHER_API_TIMEOUT,
    ),
    policy=TTLPolicy(datetime.timedelta(seconds=settings.WEATHER_CACHE_TTL)),
    timeout=settings.WEATHER_API_TIMEOUT,
    max_concurrent=settings.MAX_CONCURRENT_WEATHER_REQUESTS,
)

wildlife_provider = WildlifeHazardProvider(
    dataset_path=settings.WILDLIFE_DATASET_PATH,
    feed=(
        WildlifeFeed(settings.WILDLIFE_FEED_URL, timeout=settings.WILDLIFE_FEED_TIMEOUT)
        if settings.WILDLIFE_FEED_URL else None
    ),
    interval=settings.WILDLIFE_REFRESH_INTERVAL,
)

aggregator = RiskAggregator(weather_provider, wildlife_provider)


def get_aggregator() -> RiskAggregator:
    return aggregator


def get_wildlife_provider() -> WildlifeHazardProvider:
    return wildlife_provider


@app.on_event("startup")
async def startup():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await wildlife_provider.start()
    logger.info("Risk engine started (wildlife source: %s)", settings.WILDLIFE_FEED_URL or "static dataset")

@app.on_event("shutdown")
async def shutdown():
    await wildlife_provider.stop()

# ---------- Catalog ----------
@app.get("/api/airports")
def list_airports(q: str | None = None):
    items = AIRPORTS
    if q:
        qn = q.lower()
        items = [
            a for a in items
            if qn in a["code"].lower() or qn in a["city"].lower() or qn in a["name"].lower()
        ]
    return items

@app.get("/api/airports/{code}")
def airport_details(code: str):
    a = AIRPORT_BY_CODE.get(code.strip().upper())
    if not a:
        raise HTTPException(404, "Unknown airport")
    return a

# ---------- Predictions ----------
@app.post("/api/predict/{airport}")
async def predict(
    airport: str,
    targetTime: datetime.datetime | None = None,
    session=Depends(get_session),
    risk=Depends(get_aggregator),
):
    try:
        assessment = await risk.assess(airport, targetTime)
    except InvalidInput as e:
        raise HTTPException(400, str(e))

    session.add(Prediction(
        airport=assessment.location,
        risk_level=assessment.tier.value,
        risk_score=assessment.total_score,
        confidence=assessment.breakdown.confidence,
        weather=assessment.weather_narrative,
        is_time_travel=assessment.is_time_travel,
        target_time=assessment.target_time,
    ))
    await session.commit()
    return assessment.to_dict()

@app.get("/api/predictions")
async def list_predictions(session=Depends(get_session)):
    rows = (
        await session.execute(
            select(Prediction).order_by(Prediction.created_at.desc(), Prediction.id.desc())
        )
    ).scalars().all()
    return [r.to_dict() for r in rows]

@app.get("/api/predictions/{airport}")
async def list_predictions_for_airport(airport: str, session=Depends(get_session)):
    rows = (
        await session.execute(
            select(Prediction)
            .where(Prediction.airport == airport.strip().upper())
            .order_by(Prediction.created_at.desc(), Prediction.id.desc())
        )
    ).scalars().all()
    return [r.to_dict() for r in rows]

@app.delete("/api/predictions")
async def clear_predictions(session=Depends(get_session)):
    await session.execute(delete(Prediction))
    await session.commit()
    return {"ok": True}

@app.delete("/api/predictions/{prediction_id}")
async def delete_prediction(prediction_id: int, session=Depends(get_session)):
    result = await session.execute(delete(Prediction).where(Prediction.id == prediction_id))
    await session.commit()
    if result.rowcount == 0:
        raise HTTPException(404, "Unknown prediction")
    return {"ok": True}

@app.get("/api/statistics")
async def statistics(session=Depends(get_session)):
    rows = (
        await session.execute(
            select(Prediction.risk_level, func.count(Prediction.id)).group_by(Prediction.risk_level)
        )
    ).all()
    counts = {level: n for level, n in rows}
    return {
        "total": sum(counts.values()),
        "highRisk": counts.get("High", 0),
        "mediumRisk": counts.get("Medium", 0),
        "lowRisk": counts.get("Low", 0),
    }

# ---------- Health ----------
@app.get("/api/health")
def health(wildlife=Depends(get_wildlife_provider)):
    return {
        "status": "ok",
        "wildlifeRecords": len(wildlife.table),
        "wildlifeLastRefresh": wildlife.last_refresh.isoformat() if wildlife.last_refresh else None,
        "wildlifeRefreshRunning": wildlife.running,
    }
