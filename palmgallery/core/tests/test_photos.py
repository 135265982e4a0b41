import json
import random

import pytest
import requests

from palmgallery.core import photos as photos_mod
from palmgallery.core.errors import PhotoIndexError
from palmgallery.core.photos import DEFAULT_PHOTOS, PhotoIndex, http_loader, json_file_loader


def test_json_file_with_plain_names(tmp_path):
    p = tmp_path / "photos.json"
    p.write_text(json.dumps(["a.jpg", "b.jpg"]))
    assert PhotoIndex.from_source(str(p)).files == ("a.jpg", "b.jpg")


def test_json_file_with_records(tmp_path):
    p = tmp_path / "photos.json"
    p.write_text(json.dumps([{"filename": "x.png", "size": 10}, {"filename": "y.png"}]))
    assert json_file_loader(p)() == ["x.png", "y.png"]


def test_bad_listing_raises(tmp_path):
    p = tmp_path / "photos.json"
    p.write_text(json.dumps({"photos": []}))
    with pytest.raises(PhotoIndexError):
        json_file_loader(p)()
    p.write_text("[1, 2]")
    with pytest.raises(PhotoIndexError):
        json_file_loader(p)()


class _Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_missing_file_leaves_index_empty_then_retries(tmp_path):
    p = tmp_path / "photos.json"
    clock = _Clock()
    idx = PhotoIndex(loader=json_file_loader(p), retry_s=5.0, clock=clock)
    assert len(idx) == 0
    assert idx.pick_random(random.Random(0)) is None
    assert idx.neighbour("a.jpg", 1) is None

    p.write_text(json.dumps(["a.jpg"]))
    assert idx.files == ()
    clock.now += 5.0
    assert idx.files == ("a.jpg",)


def test_failed_load_backs_off():
    calls = []

    def broken():
        calls.append(1)
        raise PhotoIndexError("service down")

    clock = _Clock()
    idx = PhotoIndex(loader=broken, retry_s=5.0, clock=clock)
    for _ in range(100):
        assert idx.files == ()
        clock.now += 0.01
    assert len(calls) == 1
    clock.now += 5.0
    assert idx.files == ()
    assert len(calls) == 2


def test_defaults_used_when_source_unavailable(tmp_path):
    idx = PhotoIndex.from_source(str(tmp_path / "nope.json"), use_defaults=True)
    assert idx.files == DEFAULT_PHOTOS
    assert PhotoIndex.from_source(None, use_defaults=True).files == DEFAULT_PHOTOS
    assert PhotoIndex.from_source(None).files == ()


class _Resp:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status}")

    def json(self):
        return self.payload


def test_http_loader(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _Resp([{"filename": "1.jpg"}, {"filename": "2.jpg"}])

    monkeypatch.setattr(photos_mod.requests, "get", fake_get)
    idx = PhotoIndex.from_source("http://localhost:3000/api/photos")
    assert idx.files == ("1.jpg", "2.jpg")
    assert calls == [("http://localhost:3000/api/photos", 3.0)]


def test_http_error_becomes_index_error(monkeypatch):
    monkeypatch.setattr(photos_mod.requests, "get", lambda url, timeout: _Resp([], status=500))
    with pytest.raises(PhotoIndexError):
        http_loader("http://localhost:3000/api/photos")()


def test_pick_random_avoids_previous():
    idx = PhotoIndex(files=["a", "b", "c"])
    for seed in range(30):
        assert idx.pick_random(random.Random(seed), exclude="b") != "b"
    assert PhotoIndex(files=["only"]).pick_random(random.Random(0), exclude="only") == "only"


def test_neighbour_wraps():
    idx = PhotoIndex(files=["a", "b", "c"])
    assert idx.neighbour("c", 1) == "a"
    assert idx.neighbour("a", -1) == "c"
    assert idx.neighbour("b", 1) == "c"
