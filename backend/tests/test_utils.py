"""Tests for number generation and rate parsing helpers."""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.fixture import Fixture
from charterdesk.utils import numbering
from charterdesk.utils.dates import days_between
from charterdesk.utils.numbers import first_number, percent_change


@pytest.mark.unit
class TestFirstNumber:
    @pytest.mark.parametrize("text,expected", [
        ("WS 85", 85.0),
        ("$12.50/mt", 12.5),
        ("USD 25,000 PDPR", 25000.0),
        ("-3.5", -3.5),
        (".75 lumpsum", 0.75),
    ])
    def test_parses(self, text, expected):
        assert first_number(text) == expected

    @pytest.mark.parametrize("text", [None, "", "TBA"])
    def test_none_without_digits(self, text):
        assert first_number(text) is None


@pytest.mark.unit
class TestPercentChange:
    def test_increase(self):
        assert percent_change(80.0, 90.0) == pytest.approx(12.5)

    @pytest.mark.parametrize("reference,value", [(None, 1.0), (1.0, None), (0.0, 5.0)])
    def test_undefined(self, reference, value):
        assert percent_change(reference, value) is None

    def test_days_between_rounds(self):
        assert days_between(datetime(2026, 1, 1), datetime(2026, 1, 3, 13)) == 3
        assert days_between(None, datetime(2026, 1, 3)) is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestNumbering:
    async def test_format(self, db_session: AsyncSession):
        number = await numbering.generate_number(db_session, Fixture.fixture_number, "fixture")

        assert number.startswith("FIX")
        assert len(number) == 8
        assert number[3:].isdigit()

    async def test_redraws_on_collision(self, db_session: AsyncSession, test_organization, monkeypatch):
        db_session.add(Fixture(fixture_number="FIX11111", organization_id=test_organization.id))
        await db_session.flush()
        draws = iter(["FIX11111", "FIX22222"])
        monkeypatch.setattr(numbering, "_candidate", lambda prefix: next(draws))

        number = await numbering.generate_number(db_session, Fixture.fixture_number, "fixture")

        assert number == "FIX22222"

    async def test_gives_up(self, db_session: AsyncSession, test_organization, monkeypatch):
        db_session.add(Fixture(fixture_number="CP11111", organization_id=test_organization.id))
        await db_session.flush()
        monkeypatch.setattr(numbering, "_candidate", lambda prefix: "CP11111")

        with pytest.raises(RuntimeError):
            await numbering.generate_number(db_session, Fixture.fixture_number, "contract")
