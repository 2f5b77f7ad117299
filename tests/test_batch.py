"""
Unit tests for src/figi_client/batch.py.

Covers:
- Planning: variant expansion, origin tagging, chunking by tier cap.
- Merge policy: first data wins, order independence, synthesized warnings.
- resolve_batch / search_text end to end against a mocked session.
- batch_mapping chunking and resolve_one routing.
"""

from __future__ import annotations

import itertools
from unittest.mock import MagicMock

import pytest

from figi_client.batch import (
    DispatchResult,
    batch_mapping,
    build_requests,
    chunk,
    expand_identifiers,
    merge_results,
    plan_requests,
    resolve_batch,
    resolve_one,
    search_text,
)
from figi_client.errors import FigiApiError, ValidationError
from identifiers import Confidence, DetectedIdentifier, IdentifierKind, detect_identifier

from .conftest import AAPL_COMMON, AAPL_ISIN, NO_MATCH, data_response, make_response


def _answer_by_job(job: dict) -> dict:
    """Fake service: only Common Stock tickers and known ids have data."""
    if job["idType"] == "ID_EXCH_SYMBOL":
        if job.get("securityType2") == "Common Stock":
            return data_response(AAPL_COMMON)
        return NO_MATCH
    if job["idType"] == "ID_ISIN":
        return data_response(AAPL_ISIN)
    if job["idType"] == "ID_BB_GLOBAL":
        return data_response(AAPL_COMMON)
    return NO_MATCH


def _fake_session(answer=_answer_by_job) -> MagicMock:
    session = MagicMock()
    session.post.side_effect = lambda url, headers=None, json=None, timeout=None: make_response(
        200, [answer(job) for job in json]
    )
    return session


def _batch_sizes(session: MagicMock) -> list[int]:
    return [len(call.kwargs["json"]) for call in session.post.call_args_list]


def _detect_all(*values: str) -> list[DetectedIdentifier]:
    return [detect_identifier(v) for v in values]


# ---------------------------------------------------------------------------
# Class: planning
# ---------------------------------------------------------------------------

class TestPlanning:

    def test_ticker_expands_to_two_variants(self):
        planned = build_requests(detect_identifier("AAPL US"), 4)
        assert [p.request for p in planned] == [
            {"idType": "ID_EXCH_SYMBOL", "idValue": "AAPL", "exchCode": "US", "securityType2": "Common Stock"},
            {"idType": "ID_EXCH_SYMBOL", "idValue": "AAPL", "exchCode": "US", "securityType2": "Preference"},
        ]
        assert {p.original_index for p in planned} == {4}

    def test_non_ticker_single_request(self):
        planned = build_requests(detect_identifier("US0378331005"), 0)
        assert len(planned) == 1
        assert planned[0].request == {"idType": "ID_ISIN", "idValue": "US0378331005"}
        assert planned[0].variant is None

    def test_empty_value_rejected(self):
        with pytest.raises(ValidationError):
            build_requests(DetectedIdentifier("", IdentifierKind.TICKER, Confidence.LOW), 0)

    @pytest.mark.parametrize("tier_cap", [1, 3, 10, 100])
    def test_plan_sizes(self, tier_cap):
        identifiers = _detect_all(
            "AAPL US", "US0378331005", "MSFT", "037833100", "BBG000B9XRY4",
            "IBM US", "2046251", "GOOG", "VOD LN", "DE0007164600",
        )
        batches = plan_requests(identifiers, tier_cap)
        tickers = sum(1 for i in identifiers if i.kind is IdentifierKind.TICKER)
        flat = [p for batch in batches for p in batch]

        assert all(len(batch) <= tier_cap for batch in batches)
        assert len(flat) == (len(identifiers) - tickers) + 2 * tickers
        assert flat == expand_identifiers(identifiers)
        assert sorted({p.original_index for p in flat}) == list(range(len(identifiers)))

    def test_chunk_rejects_zero(self):
        with pytest.raises(ValidationError):
            chunk([1, 2], 0)

    def test_chunk_keeps_order(self):
        assert chunk(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]


# ---------------------------------------------------------------------------
# Class: merge policy
# ---------------------------------------------------------------------------

class TestMerge:

    def test_first_data_wins(self):
        identifiers = _detect_all("AAPL US")
        first = data_response(AAPL_COMMON)
        second = data_response(AAPL_ISIN)
        results = [
            DispatchResult(NO_MATCH, 0, "Common Stock"),
            DispatchResult(first, 0, "Preference"),
            DispatchResult(second, 0, "Other"),
        ]
        assert merge_results(identifiers, results) == [first]

    def test_without_data_first_seen_kept(self):
        identifiers = _detect_all("ZZZZ")
        results = [
            DispatchResult({"warning": "first"}, 0, "Common Stock"),
            DispatchResult({"warning": "second"}, 0, "Preference"),
        ]
        assert merge_results(identifiers, results) == [{"warning": "first"}]

    def test_missing_index_gets_warning(self):
        identifiers = _detect_all("AAPL US", "MSFT")
        results = [DispatchResult(data_response(AAPL_COMMON), 0)]
        merged = merge_results(identifiers, results)
        assert merged[1] == {"warning": "No identifier found for MSFT"}

    def test_order_independent_when_one_variant_has_data(self):
        identifiers = _detect_all("AAPL US", "US0378331005")
        results = [
            DispatchResult(data_response(AAPL_COMMON), 0, "Common Stock"),
            DispatchResult(NO_MATCH, 0, "Preference"),
            DispatchResult(data_response(AAPL_ISIN), 1),
        ]
        expected = merge_results(identifiers, results)
        for permutation in itertools.permutations(results):
            assert merge_results(identifiers, list(permutation)) == expected


# ---------------------------------------------------------------------------
# Class: resolve_batch
# ---------------------------------------------------------------------------

class TestResolveBatch:

    def test_mixed_input_one_call_without_key(self, no_key_config):
        identifiers = _detect_all("AAPL US", "BBG000B9XRY4", "US0378331005")
        session = _fake_session()
        responses = resolve_batch(identifiers, no_key_config, session=session)

        assert _batch_sizes(session) == [4]
        assert responses == [
            data_response(AAPL_COMMON),
            data_response(AAPL_COMMON),
            data_response(AAPL_ISIN),
        ]

    def test_variants_split_across_batches(self, no_key_config):
        # 9 ISINs then a ticker: its two variants straddle the 10-job boundary
        identifiers = _detect_all(*["US0378331005"] * 9, "AAPL US")
        session = _fake_session()
        responses = resolve_batch(identifiers, no_key_config, session=session)

        assert _batch_sizes(session) == [10, 1]
        assert responses[-1] == data_response(AAPL_COMMON)
        assert len(responses) == 10

    def test_twenty_tickers_with_key_single_call(self, key_config):
        identifiers = _detect_all(*[f"T{n}" for n in range(20)])
        session = _fake_session()
        responses = resolve_batch(identifiers, key_config, session=session)
        assert _batch_sizes(session) == [40]
        assert len(responses) == 20

    def test_twenty_tickers_without_key_four_calls(self, no_key_config):
        identifiers = _detect_all(*[f"T{n}" for n in range(20)])
        session = _fake_session()
        resolve_batch(identifiers, no_key_config, session=session)
        assert _batch_sizes(session) == [10, 10, 10, 10]

    def test_unknown_not_dispatched(self, no_key_config):
        identifiers = _detect_all("US0378331005", "!!not-an-id!!")
        session = _fake_session()
        responses = resolve_batch(identifiers, no_key_config, session=session)

        assert _batch_sizes(session) == [1]
        assert responses[1] == {"warning": "Unrecognized identifier format: !!not-an-id!!"}

    def test_all_unknown_makes_no_call(self, no_key_config):
        session = _fake_session()
        responses = resolve_batch(_detect_all("???"), no_key_config, session=session)
        session.post.assert_not_called()
        assert len(responses) == 1

    def test_length_mismatch_aborts(self, no_key_config):
        session = MagicMock()
        session.post.return_value = make_response(200, [NO_MATCH])
        with pytest.raises(FigiApiError):
            resolve_batch(_detect_all("AAPL US"), no_key_config, session=session)


# ---------------------------------------------------------------------------
# Class: other entry points
# ---------------------------------------------------------------------------

class TestBatchMapping:

    @pytest.mark.parametrize("fixture, sizes", [
        ("no_key_config", [10, 10, 5]),
        ("key_config", [25]),
    ])
    def test_chunked_by_tier(self, request, fixture, sizes):
        config = request.getfixturevalue(fixture)
        jobs = [{"idType": "ID_ISIN", "idValue": "US0378331005"}] * 25
        session = _fake_session()
        responses = batch_mapping(jobs, config, session=session)
        assert _batch_sizes(session) == sizes
        assert len(responses) == 25

    def test_empty_rejected(self, no_key_config):
        with pytest.raises(ValidationError, match="non-empty"):
            batch_mapping([], no_key_config)


class TestResolveOne:

    @pytest.mark.parametrize("value, id_type", [
        ("US0378331005", "ID_ISIN"),
        ("037833100", "ID_CUSIP"),
        ("2046251", "ID_SEDOL"),
        ("BBG000B9XRY4", "ID_BB_GLOBAL"),
        ("MSFT", "ID_EXCH_SYMBOL"),
    ])
    def test_routes_by_kind(self, no_key_config, value, id_type):
        session = _fake_session()
        resolve_one(value, no_key_config, session=session)
        assert session.post.call_args.kwargs["json"][0]["idType"] == id_type

    def test_ticker_exchange_carried_without_variants(self, no_key_config):
        session = _fake_session()
        resolve_one("aapl us", no_key_config, session=session)
        assert session.post.call_args.kwargs["json"] == [
            {"idType": "ID_EXCH_SYMBOL", "idValue": "AAPL", "exchCode": "US"}
        ]

    def test_unknown_raises(self, no_key_config):
        session = _fake_session()
        with pytest.raises(ValidationError, match="Could not determine identifier type"):
            resolve_one("???", no_key_config, session=session)
        session.post.assert_not_called()


class TestSearchText:

    def test_end_to_end(self, no_key_config):
        session = _fake_session()
        result = search_text("AAPL US\nBBG000B9XRY4\nUS0378331005", no_key_config, session=session)

        assert _batch_sizes(session) == [4]
        assert result.summary.startswith("Detected 3 identifiers:")
        assert [i.value for i in result.identifiers] == ["AAPL", "BBG000B9XRY4", "US0378331005"]
        assert [i.kind for i in result.identifiers] == [
            IdentifierKind.TICKER,
            IdentifierKind.BLOOMBERG_ID,
            IdentifierKind.ISIN,
        ]
        assert all(i.confidence is Confidence.HIGH for i in result.identifiers)
        assert result.identifiers[0].exch_code == "US"
        assert result.responses[0] == data_response(AAPL_COMMON)
        assert result.variants == ["Common Stock", None, None]
        assert result.found == ["AAPL [US]", "BBG000B9XRY4", "US0378331005"]
        assert result.not_found == []

    def test_not_found_listed(self, no_key_config):
        session = _fake_session(lambda job: NO_MATCH)
        result = search_text("Symbol\nZZZZ US", no_key_config, session=session)
        assert result.not_found == ["ZZZZ [US]"]
        assert result.variants == ["Common Stock"]

    def test_nothing_searchable(self, no_key_config):
        session = _fake_session()
        result = search_text("Ticker\n???", no_key_config, session=session)
        session.post.assert_not_called()
        assert result.identifiers == []
        assert result.responses == []
