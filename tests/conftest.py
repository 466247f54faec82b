"""
Shared fixtures for the Loop hospital network assistant tests.
"""

import os

# Keep test runs from writing a log file or picking up a real Gemini key
os.environ["LOG_FILE"] = ""
os.environ["GEMINI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.dialogue import build_dialogue_handler
from app.directory import HospitalDirectory
from app.matcher import HospitalMatcher
from app.memory import get_call_session_store

SAMPLE_CSV = """HOSPITAL NAME,Address,CITY
Manipal Hospital,"98, HAL Old Airport Road",Bangalore
Apollo Hospital Bannerghatta,"154/11, Bannerghatta Road",Bangalore
Fortis Hospital,"14, Cunningham Road",Bangalore
Narayana Health City,"258/A, Bommasandra",Bangalore
Apollo Hospital,"21, Greams Lane",Chennai
Lilavati Hospital,"A-791, Bandra Reclamation",Mumbai
Ruby Hall Clinic,"40, Sassoon Road",Pune
"""


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Run every test without external credentials and with no live call sessions."""
    monkeypatch.setattr(settings, "gemini_api_key", None)
    monkeypatch.setattr(settings, "twilio_auth_token", None)
    store = get_call_session_store()
    store.sessions.clear()
    yield
    store.sessions.clear()


@pytest.fixture
def sample_csv(tmp_path):
    """Write the sample hospital list to a temporary CSV file."""
    path = tmp_path / "hospitals.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def directory(sample_csv):
    return HospitalDirectory.from_csv(str(sample_csv))


@pytest.fixture
def matcher(directory):
    return HospitalMatcher(directory)


@pytest.fixture
def handler(matcher):
    """Dialogue handler wired exactly as in production, minus the Gemini key."""
    return build_dialogue_handler(matcher)


@pytest.fixture
def client(sample_csv, monkeypatch):
    """Test client whose startup loads the sample CSV."""
    from app.main import app

    monkeypatch.setattr(settings, "hospital_csv_path", str(sample_csv))
    with TestClient(app) as test_client:
        yield test_client
