"""
Classroom demo endpoints. None of these touch the database.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from tactoe_api.config import MAJOR_VERSION, MINOR_VERSION

logger = logging.getLogger(__name__)

router = APIRouter()

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

BATMAN = {
    "firstName": "Bruce",
    "lastName": "Wayne",
    "preferredName": "Batman",
    "email": "darkknight@lewisu.edu",
    "phoneNumber": "800-bat-mann",
    "city": "Gotham",
    "state": "NJ",
    "zip": "07101",
    "lat": "40.73",
    "lng": "-74.17",
    "favoriteHobby": "Flying",
    "class": "cpsc-24700-001",
    "room": "AS-104-A",
    "startTime": "2 PM CT",
    "seatNumber": "",
    "inPerson": ["Monday", "Wednesday"],
    "virtual": ["Friday"],
}


def parse_leading_int(value: Optional[str]) -> Optional[int]:
    """Parse the integer prefix of ``value`` ("12px" -> 12), or None."""
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


@router.get("/about", response_class=PlainTextResponse)
def about():
    logger.info('Calling "/about"')
    return "About Node.js on Azure Template."


@router.get("/version", response_class=PlainTextResponse)
def version():
    logger.info('Calling "/version"')
    return f"Version: {MAJOR_VERSION}.{MINOR_VERSION}"


@router.get("/2plus2", response_class=PlainTextResponse)
def two_plus_two():
    logger.info('Calling "/2plus2"')
    return "4"


@router.get("/add-two-integers", response_class=PlainTextResponse)
def add_two_integers(x: Optional[str] = Query(None), y: Optional[str] = Query(None)):
    logger.info('Calling "/add-two-integers"')
    a, b = parse_leading_int(x), parse_leading_int(y)
    if a is None or b is None:
        return "NaN"
    return str(a + b)


@router.get("/calculate-bmi", response_class=PlainTextResponse)
def calculate_bmi(
    feet: Optional[str] = Query(None),
    inches: Optional[str] = Query(None),
    lbs: Optional[str] = Query(None),
):
    logger.info('Calling "/calculate-bmi"')
    logger.info(
        "Height: %s'%s\" Weight: %s lbs.",
        parse_leading_int(feet),
        parse_leading_int(inches),
        parse_leading_int(lbs),
    )
    return 'Todo: Implement "/calculate-bmi"'


@router.get("/test", response_class=HTMLResponse)
def test_page(
    request: Request,
    year: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
):
    now = datetime.now().strftime("%a %b %d %Y %H:%M:%S")
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    txt = f"{year or ''} {month or ''}"
    return (
        "<h3>Testing Function</h3>"
        f"The date and time are currently: {now}<br><br>"
        f"req.url={html.escape(path)}<br><br>"
        "Consider adding '/test?year=2017&month=July' to the URL.<br><br>"
        f"txt={html.escape(txt)}"
        "<h3>The End.</h3>"
    )


@router.get("/batman")
def batman():
    logger.info('Calling "/batman"')
    return BATMAN
