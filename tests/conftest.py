"""Pytest configuration and fixtures."""

import copy
import json

import pytest

from macbook_service.app import create_app
from macbook_service.catalog import load_catalog
from macbook_service.config import DEFAULT_DATA_PATH, Settings


def _device(name, model_id, released, status, end, macos):
    return {
        "model_name": name,
        "model_id": model_id,
        "release_date": released,
        "support_status": status,
        "supported_end_date": end,
        "latest_macos_supported": macos,
    }


SAMPLE_DOCUMENT = {
    "macbook_models": {
        "macbook_air": [
            _device("MacBook Air (13-inch, Mid 2012)", "MacBookAir5,2", "2012-06-11", "obsolete", "2020-06-30", "macOS Catalina 10.15.7"),
            _device("MacBook Air (M1, 2020)", "MacBookAir10,1", "2020-11-17", "supported", "2029-03-31", "macOS Tahoe 26"),
            _device("MacBook Air (Retina, 13-inch, 2018)", "MacBookAir8,1", "2018-11-07", "vintage", "2025-07-31", "macOS Sonoma 14"),
        ],
        "macbook_pro": [
            _device("MacBook Pro (13-inch, M1, 2020)", "MacBookPro17,1", "2020-11-17", "supported", "2029-03-31", "macOS Tahoe 26"),
            _device("MacBook Pro (15-inch, 2017)", "MacBookPro14,3", "2017-06-05", "vintage", "2025-06-30", "macOS Ventura 13"),
            _device("MacBook Pro (14-inch, M4, 2024)", "Mac16,1", "2024-11-08", "supported", "2033", "macOS Tahoe 26"),
        ],
    },
    "support_status_definitions": {
        "supported": "Receives updates and hardware service.",
        "vintage": "Between 5 and 7 years since last sold.",
        "obsolete": "More than 7 years since last sold.",
    },
    "notes": {"source": "test fixture"},
}


@pytest.fixture
def sample_document():
    """A fresh, mutable copy of the small test catalog document."""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def write_document(tmp_path):
    """Write a catalog document to a temporary JSON file and return its path."""
    def _write(document, name="catalog.json"):
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def catalog(sample_document, write_document):
    return load_catalog(write_document(sample_document))


@pytest.fixture
def settings(tmp_path):
    return Settings(port=4321, data_path=tmp_path / "catalog.json")


@pytest.fixture
def client(catalog, settings):
    app = create_app(catalog=catalog, settings=settings)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture(scope="session")
def bundled_catalog():
    return load_catalog(DEFAULT_DATA_PATH)


@pytest.fixture
def bundled_client(bundled_catalog):
    app = create_app(catalog=bundled_catalog, settings=Settings())
    app.config["TESTING"] = True
    return app.test_client()
