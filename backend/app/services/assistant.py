"""
Educational space-weather assistant.

Forwards a prompt built from live NASA data to the Cohere chat API.
When no key is configured, or the call fails, a canned answer chosen by
keyword is returned instead so the dashboard always gets a reply.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

FALLBACK_ANSWERS = [
    (("cme", "coronal", "ejection"),
     "Coronal mass ejections (CMEs) are huge bursts of solar plasma that can disturb Earth's "
     "magnetosphere, causing geomagnetic storms and auroras."),
    (("flare", "solar"),
     "Solar flares are intense bursts of electromagnetic radiation from the Sun's atmosphere, "
     "classified from class A (smallest) up to X (largest)."),
    (("asteroid", "neo"),
     "Near-Earth objects (NEOs) are asteroids and comets whose orbits bring them close to our "
     "planet. NASA tracks them constantly to spot any impact risk early."),
    (("storm", "geomagnetic"),
     "Geomagnetic storms are disturbances of Earth's magnetic field driven by the solar wind "
     "and CMEs, rated on the NOAA scale from G1 to G5."),
]

DEFAULT_ANSWER = (
    "Space weather covers phenomena such as solar flares, coronal mass ejections, geomagnetic "
    "storms and solar radiation. These events can affect satellites, communications and power "
    "grids here on Earth."
)


def fallback_answer(question: str) -> str:
    lowered = question.lower()
    for keywords, answer in FALLBACK_ANSWERS:
        if any(k in lowered for k in keywords):
            return answer
    return DEFAULT_ANSWER


def _items(context: Dict[str, Any], key: str, limit: int) -> List[Dict[str, Any]]:
    values = context.get(key)
    if not isinstance(values, list):
        return []
    return [v for v in values[:limit] if isinstance(v, dict)]


def _first(values: Any) -> Dict[str, Any]:
    if isinstance(values, list) and values and isinstance(values[0], dict):
        return values[0]
    return {}


def build_prompt(question: str, context: Dict[str, Any]) -> str:
    lines: List[str] = []

    flares = _items(context, "flares", 5)
    if flares:
        lines.append("RECENT SOLAR FLARES:")
        lines += [f"- Class {f.get('classType')}, date: {f.get('beginTime')}" for f in flares]

    cmes = _items(context, "cmes", 3)
    if cmes:
        lines.append("RECENT CORONAL MASS EJECTIONS:")
        for c in cmes:
            speed = _first(c.get("cmeAnalyses")).get("speed") or "unknown"
            lines.append(f"- Speed: {speed} km/s, id: {c.get('activityID')}")

    storms = _items(context, "gst", 3)
    if storms:
        lines.append("RECENT GEOMAGNETIC STORMS:")
        for s in storms:
            kp = _first(s.get("allKpIndex")).get("kpIndex") or "unknown"
            lines.append(f"- Kp index: {kp}, date: {s.get('startTime')}")

    neos = _items(context, "neos", 3)
    if neos:
        lines.append("NEAR-EARTH ASTEROIDS TODAY:")
        for neo in neos:
            lunar = (_first(neo.get("close_approach_data")).get("miss_distance") or {}).get("lunar")
            try:
                distance = f"{float(lunar):.2f}"
            except (TypeError, ValueError):
                distance = "unknown"
            lines.append(f"- {neo.get('name')}, distance: {distance} lunar distances")

    data_context = "\n".join(lines) or "No significant space weather events right now."

    return (
        "You are an educational space-weather assistant for children and the general public. "
        "Explain complex ideas in simple, friendly language.\n\n"
        f"REAL NASA DATA:\n{data_context}\n\n"
        "INSTRUCTIONS:\n"
        "- Talk as you would to a 10 year old\n"
        "- Compare with everyday things\n"
        "- Explain real-life impact (GPS, communications, satellites, auroras)\n"
        "- Keep it under 300 words\n"
        "- Mention the current data when it is relevant\n\n"
        f"QUESTION: {question}"
    )


async def generate_with_cohere(prompt: str, api_key: str, client: Optional[httpx.AsyncClient] = None) -> str:
    payload = {"message": prompt, "temperature": 0.7, "max_tokens": 500}
    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    if client is None:
        async with httpx.AsyncClient() as owned:
            resp = await owned.post(settings.COHERE_API_URL, json=payload, headers=headers, timeout=30.0)
    else:
        resp = await client.post(settings.COHERE_API_URL, json=payload, headers=headers, timeout=30.0)
    resp.raise_for_status()
    data = resp.json()

    if data.get("text"):
        return data["text"].strip()
    raise ValueError(f"Unexpected Cohere response: {data.get('message') or data}")


async def generate_educational_response(
    question: str,
    context: Dict[str, Any],
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    if not settings.COHERE_API_KEY:
        logger.info("COHERE_API_KEY not set, using canned answer")
        return fallback_answer(question)

    prompt = build_prompt(question, context)
    try:
        return await generate_with_cohere(prompt, settings.COHERE_API_KEY, client)
    except Exception as e:
        logger.error(f"Cohere request failed, using canned answer: {e}")
        return fallback_answer(question)
