"""Property-based tests for the reconciliation decision."""

from __future__ import annotations

import string
from datetime import UTC, datetime, timedelta

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from virtualfs.schemas.file import FileInfo, FileRecord, ReconcileAction
from virtualfs.services.reconcile_service import decide

PROPERTY_SETTINGS = settings(
    max_examples=250,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)

_SIZE = st.integers(min_value=0, max_value=2**40)
_MOD_TIME = st.datetimes(
    min_value=datetime(1980, 1, 1),
    max_value=datetime(2100, 1, 1),
    timezones=st.just(UTC),
)
_DIGEST = st.text(alphabet="0123456789abcdef", min_size=32, max_size=32)
_SEGMENT = st.text(alphabet=string.ascii_lowercase + string.digits, min_size=1, max_size=8)
_PATH = st.builds("/".join, st.lists(_SEGMENT, min_size=1, max_size=4))


def _record(path: str, size: int, mod_time: datetime, digest: str) -> FileRecord:
    return FileRecord(
        path=path, stored_size=size, mod_time=mod_time, has_hash=True, hash_value=digest
    )


def _info(path: str, size: int, mod_time: datetime, digest: str | None) -> FileInfo:
    hashes = {"md5": digest} if digest is not None else {}
    return FileInfo(path=path, size=size, mod_time=mod_time, hashes=hashes)


class TestDecideProperties:
    @PROPERTY_SETTINGS
    @given(path=_PATH, size=_SIZE, mod_time=_MOD_TIME, digest=_DIGEST)
    def test_identical_triple_is_skip(
        self, path: str, size: int, mod_time: datetime, digest: str
    ) -> None:
        record = _record(path, size, mod_time, digest)
        assert decide(record, _info(path, size, mod_time, digest)) is ReconcileAction.SKIP
        assert decide(record, _info(path, size, mod_time, None)) is ReconcileAction.SKIP

    @PROPERTY_SETTINGS
    @given(
        path=_PATH,
        size=_SIZE,
        other_size=_SIZE,
        mod_time=_MOD_TIME,
        digest=_DIGEST,
    )
    def test_any_size_difference_is_update(
        self, path: str, size: int, other_size: int, mod_time: datetime, digest: str
    ) -> None:
        if size == other_size:
            other_size += 1
        record = _record(path, size, mod_time, digest)
        result = decide(record, _info(path, other_size, mod_time, digest))
        assert result is ReconcileAction.UPDATE

    @PROPERTY_SETTINGS
    @given(
        path=_PATH,
        size=_SIZE,
        mod_time=_MOD_TIME,
        shift_us=st.integers(min_value=1, max_value=10**12),
        forward=st.booleans(),
        digest=_DIGEST,
    )
    def test_any_mod_time_difference_is_update(
        self,
        path: str,
        size: int,
        mod_time: datetime,
        shift_us: int,
        forward: bool,
        digest: str,
    ) -> None:
        delta = timedelta(microseconds=shift_us)
        other = mod_time + delta if forward else mod_time - delta
        record = _record(path, size, mod_time, digest)
        assert decide(record, _info(path, size, other, digest)) is ReconcileAction.UPDATE

    @PROPERTY_SETTINGS
    @given(path=_PATH, size=_SIZE, mod_time=_MOD_TIME, digest=_DIGEST, other=_DIGEST)
    def test_any_hash_difference_is_update(
        self, path: str, size: int, mod_time: datetime, digest: str, other: str
    ) -> None:
        if digest == other:
            return
        record = _record(path, size, mod_time, digest)
        assert decide(record, _info(path, size, mod_time, other)) is ReconcileAction.UPDATE

    @PROPERTY_SETTINGS
    @given(path=_PATH, size=_SIZE, mod_time=_MOD_TIME, digest=_DIGEST)
    def test_tombstone_is_always_create(
        self, path: str, size: int, mod_time: datetime, digest: str
    ) -> None:
        record = _record(path, size, mod_time, digest).model_copy(update={"deleted": True})
        assert decide(record, _info(path, size, mod_time, digest)) is ReconcileAction.CREATE
