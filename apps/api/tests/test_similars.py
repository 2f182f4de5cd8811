"""Tests for /api/v1/research/similars (corpus reads and duplicate checks)."""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from app.services.corpus import CorpusUnavailableError
from tests.conftest import CORPUS

pytestmark = pytest.mark.asyncio

CHECK_URL = "/api/v1/research/similars/check"


async def test_check_exact_title_blocks(client: AsyncClient, mock_corpus):
    response = await client.post(
        CHECK_URL,
        json={"title": "Impact of AI on Education", "abstract": "Unrelated lattice cryptography."},
    )
    assert response.status_code == 200, response.text
    data = response.json()

    assert data["title"]["classification"] == "exact_match"
    assert data["title"]["blocking"] is True
    assert data["title"]["score_percent"] == 100
    assert data["title"]["matched_researcher"] == "Jane Mwangi"
    assert "Jane Mwangi" in data["title"]["message"]
    assert data["blocking"] is True
    assert data["can_submit"] is False
    assert data["corpus_size"] == len(CORPUS)


async def test_check_clear_submission(client: AsyncClient, mock_corpus):
    response = await client.post(
        CHECK_URL,
        json={
            "title": "Quantum Computing Applications in Cryptography",
            "abstract": "Lattice-based key exchange is benchmarked on embedded hardware.",
        },
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["title"]["classification"] == "clear"
    assert data["title"]["message"] is None
    assert data["abstract"]["classification"] == "clear"
    assert data["can_submit"] is True


async def test_check_cross_field_abstract(client: AsyncClient, mock_corpus):
    response = await client.post(CHECK_URL, json={"abstract": "Impact of AI on Education"})
    data = response.json()
    assert data["abstract"]["classification"] == "cross_field_match"
    assert data["abstract"]["matched_field"] == "title"
    assert data["title"] is None


async def test_check_single_field_cannot_submit(client: AsyncClient, mock_corpus):
    response = await client.post(
        CHECK_URL, json={"title": "Quantum Computing Applications in Cryptography"}
    )
    data = response.json()
    assert data["blocking"] is False
    assert data["can_submit"] is False


async def test_check_moderate_is_warning(client: AsyncClient, mock_corpus):
    response = await client.post(
        CHECK_URL, json={"title": "Climate Change Effects on Coastal Farming"}
    )
    data = response.json()
    assert data["title"]["classification"] == "moderate_similarity"
    assert data["title"]["blocking"] is False
    assert data["blocking"] is False


async def test_check_requires_a_field(client: AsyncClient, mock_corpus):
    response = await client.post(CHECK_URL, json={})
    assert response.status_code == 422
    mock_corpus.assert_not_called()


async def test_check_corpus_unavailable(client: AsyncClient):
    with patch(
        "app.services.corpus.fetch_corpus",
        new_callable=AsyncMock,
        side_effect=CorpusUnavailableError("Research corpus is unavailable"),
    ):
        response = await client.post(CHECK_URL, json={"title": "Anything"})
    assert response.status_code == 503
    assert "unavailable" in response.json()["detail"]


async def test_list_titles(client: AsyncClient):
    rows = [{"title": "Impact of AI on Education", "researcher": "Jane Mwangi"}]
    with patch(
        "app.services.corpus.fetch_titles", new_callable=AsyncMock, return_value=rows
    ):
        response = await client.get("/api/v1/research/similars/titles")
    assert response.status_code == 200
    assert response.json() == rows


async def test_list_abstracts(client: AsyncClient):
    rows = [{"abstract": "How AI tools change teaching.", "researcher": "Jane Mwangi"}]
    with patch(
        "app.services.corpus.fetch_abstracts", new_callable=AsyncMock, return_value=rows
    ):
        response = await client.get("/api/v1/research/similars/abstracts")
    assert response.json() == rows


async def test_list_researchers(client: AsyncClient):
    rows = [{"researcher": "Jane Mwangi", "institution": "Makerere University", "school": None}]
    with patch(
        "app.services.corpus.fetch_researchers", new_callable=AsyncMock, return_value=rows
    ):
        response = await client.get("/api/v1/research/similars/researchers")
    assert response.json() == rows
