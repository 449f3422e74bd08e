"""
conftest.py
-----------
Shared pytest fixtures for shelfcase tests.

Provides fixtures for:
- An isolated user data directory
- Book and bibliography collections with a few entries
- Sample RIS and document content
"""
import logging

import pytest

from shelfcase.presets import create_collection


# ----- Environment Fixtures -----

@pytest.fixture(autouse=True)
def shelfcase_home(tmp_path, monkeypatch):
    """Point the user data directory at a temporary folder."""
    home = tmp_path / "home"
    monkeypatch.setenv("SHELFCASE_HOME", str(home))
    return home


@pytest.fixture
def reset_logging():
    """Drop handlers attached to the shelfcase logger by a test."""
    yield
    logger = logging.getLogger("shelfcase")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()


# ----- Collection Fixtures -----

@pytest.fixture
def book_collection():
    """Book collection with three entries, one of them without an author."""
    coll = create_collection("book", "Shelf")
    coll.add_entries([
        coll.new_entry({"title": "On Basilisk Station", "author": "Weber, David",
                        "pub_year": "1993", "read": "true"}),
        coll.new_entry({"title": "March Upcountry", "author": "Weber, David; Ringo, John",
                        "pub_year": "2001"}),
        coll.new_entry({"title": "Anonymous Tales"}),
    ])
    return coll


@pytest.fixture
def bibtex_collection():
    """Bibliography collection with two complete entries."""
    coll = create_collection("bibtex", "Papers")
    coll.add_entries([
        coll.new_entry({"entry-type": "book", "bibtex-key": "weber1993",
                        "title": "On Basilisk Station", "author": "Weber, David",
                        "year": "1993", "publisher": "Baen"}),
        coll.new_entry({"entry-type": "article", "bibtex-key": "knuth1984",
                        "title": "Literate Programming", "author": "Knuth, Donald E.",
                        "journal": "The Computer Journal", "year": "1984", "pages": "97-111"}),
    ])
    return coll


# ----- Sample Content Fixtures -----

@pytest.fixture
def sample_ris():
    """Two records: a book and a journal article with a wrapped abstract."""
    return (
        "TY  - BOOK\n"
        "TI  - On Basilisk Station\n"
        "AU  - Weber, David\n"
        "PY  - 1993/04/01/\n"
        "PB  - Baen\n"
        "ER  - \n"
        "\n"
        "TY  - JOUR\n"
        "TI  - Literate Programming\n"
        "AU  - Knuth, Donald E.\n"
        "JO  - The Computer Journal\n"
        "N2  - Programs are meant\n"
        "to be read by humans.\n"
        "KW  - literate\n"
        "KW  - programming\n"
        "ER  -\n"
    )


@pytest.fixture
def ris_file(tmp_path, sample_ris):
    path = tmp_path / "refs.ris"
    path.write_text(sample_ris, encoding="utf-8")
    return path
