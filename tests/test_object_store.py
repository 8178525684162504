"""Tests for the write-once object store."""

import pytest

from kvlet.errors import AmbiguousOrNotFound, CommitNotFound, CorruptObject, ObjectNotFound
from kvlet.kv.memory import Memory
from kvlet.object_store import BLOB_KEY, BLOB_META_KEY, COMMIT_KEY, ObjectStore
from kvlet.objects import Blob, Commit


def _commit(message: str, parents=()) -> Commit:
    return Commit(message, 1.0, "master", parents, {"a.txt": "x"})


class TestObjectStorePutGet:
    def test_blob_round_trip(self):
        store = ObjectStore()
        blob = Blob("a.txt", b"hello", created_at=3.0)
        digest = store.put(blob)
        assert digest == blob.digest
        assert store.get(digest) == blob

    def test_commit_round_trip(self):
        store = ObjectStore()
        commit = _commit("first")
        assert store.get(store.put(commit)) == commit

    def test_put_is_idempotent(self):
        kv = Memory()
        store = ObjectStore(kv)
        blob = Blob("a.txt", b"hello")
        n_keys = len(list(kv.keys()))
        assert store.put(blob) == store.put(blob)
        assert len(list(kv.keys())) == n_keys + 2

    def test_blob_records_written_in_one_step(self):
        calls = []

        class Recording(Memory):
            def add_many(self, **kwargs):
                calls.append(sorted(kwargs))
                return super().add_many(**kwargs)

        kv = Recording()
        digest = ObjectStore(kv).put(Blob("a.txt", b"hello"))
        assert calls == [sorted([BLOB_KEY % digest, BLOB_META_KEY % digest])]
        assert kv.get(BLOB_KEY % digest) == b"hello"

    def test_write_once(self):
        """A second put never replaces the stored record."""
        store = ObjectStore()
        first = Blob("a.txt", b"hello", created_at=1.0)
        store.put(first)
        store.put(Blob("a.txt", b"hello", created_at=2.0))
        assert store.get_blob(first.digest).created_at == 1.0

    def test_exists(self):
        store = ObjectStore()
        blob = Blob("a.txt", b"hello")
        assert not store.exists(blob.digest)
        store.put(blob)
        assert store.exists(blob.digest)

    def test_get_unknown(self):
        with pytest.raises(ObjectNotFound):
            ObjectStore().get("0" * 40)

    def test_get_commit_unknown(self):
        with pytest.raises(CommitNotFound):
            ObjectStore().get_commit("0" * 40)

    def test_get_commit_rejects_blob(self):
        store = ObjectStore()
        digest = store.put(Blob("a.txt", b"hello"))
        with pytest.raises(CommitNotFound):
            store.get_commit(digest)

    def test_read_content(self):
        store = ObjectStore()
        digest = store.put(Blob("a.txt", b"hello"))
        assert store.read_content(digest) == b"hello"

    def test_put_rejects_other_types(self):
        with pytest.raises(TypeError):
            ObjectStore().put("nope")  # type: ignore

    def test_parents(self):
        store = ObjectStore()
        root = store.put(_commit("root"))
        child = store.put(_commit("child", (root,)))
        assert store.parents(child) == (root,)
        assert store.parents(root) == ()


class TestObjectStoreVerify:
    def test_verify_ok(self):
        store = ObjectStore()
        digest = store.put(Blob("a.txt", b"hello"))
        assert store.get(digest, verify=True).content == b"hello"

    def test_corrupt_blob(self):
        kv = Memory()
        store = ObjectStore(kv)
        digest = store.put(Blob("a.txt", b"hello"))
        kv.set(BLOB_KEY % digest, b"tampered")
        with pytest.raises(CorruptObject) as exc:
            store.get(digest, verify=True)
        assert exc.value.digest == digest
        assert exc.value.kind == "StorageError"

    def test_corrupt_commit(self):
        kv = Memory()
        store = ObjectStore(kv)
        digest = store.put(_commit("first"))
        kv.set(COMMIT_KEY % digest, _commit("second").to_bytes())
        with pytest.raises(CorruptObject):
            store.get_commit(digest, verify=True)
        # Without verification the record is returned as stored
        assert store.get_commit(digest).message == "second"


class TestObjectStoreResolve:
    def test_full_id(self):
        store = ObjectStore()
        digest = store.put(_commit("first"))
        assert store.resolve(digest) == digest

    def test_unique_prefix(self):
        store = ObjectStore()
        digest = store.put(_commit("first"))
        assert store.resolve(digest[:6]) == digest

    def test_unknown_prefix(self):
        store = ObjectStore()
        store.put(_commit("first"))
        with pytest.raises(AmbiguousOrNotFound) as exc:
            store.resolve("zzzz")
        assert exc.value.matches == ()
        assert exc.value.kind == "NotFound"

    def test_ambiguous_prefix(self):
        store = ObjectStore()
        ids = {store.put(_commit(f"c{i}")) for i in range(40)}
        # 40 commits over 16 leading hex digits guarantees a shared first digit
        first_digits = [c[0] for c in ids]
        shared = next(d for d in first_digits if first_digits.count(d) > 1)
        with pytest.raises(AmbiguousOrNotFound) as exc:
            store.resolve(shared)
        assert len(exc.value.matches) > 1

    def test_empty_prefix(self):
        store = ObjectStore()
        store.put(_commit("first"))
        with pytest.raises(AmbiguousOrNotFound):
            store.resolve("")

    def test_blobs_are_not_commits(self):
        store = ObjectStore()
        digest = store.put(Blob("a.txt", b"hello"))
        with pytest.raises(AmbiguousOrNotFound):
            store.resolve(digest)

    def test_commit_ids_sorted(self):
        store = ObjectStore()
        ids = [store.put(_commit(f"c{i}")) for i in range(5)]
        assert store.commit_ids() == sorted(ids)
        assert {c.digest for c in store.commits()} == set(ids)
