"""Testes dos caches e utilitários de JSON."""

import re
import threading

import pytest

from lexcascade.utils.caches import BoundedCache, CorrectionCache, PatternCache
from lexcascade.utils.json_utils import extract_json, strip_code_fences, strip_thinking_block


class TestBoundedCache:

    def test_evicts_oldest(self):
        cache = BoundedCache(max_size=2)
        cache.put_if_absent("a", 1)
        cache.put_if_absent("b", 2)
        cache.put_if_absent("c", 3)

        assert "a" not in cache
        assert len(cache) == 2

    def test_put_if_absent_keeps_first_value(self):
        cache = BoundedCache()
        assert cache.put_if_absent("k", 1) == 1
        assert cache.put_if_absent("k", 2) == 1

    def test_get_or_create_concurrent(self):
        cache = BoundedCache()
        created = []

        def factory(key):
            created.append(key)
            return object()

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(cache.get_or_create("k", factory)))
            for _ in range(10)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(r) for r in results}) == 1


class TestPatternCache:

    def test_same_pattern_same_object(self):
        cache = PatternCache()
        assert cache.compile(r"\d+") is cache.compile(r"\d+")
        assert cache.compile(r"\d+") is not cache.compile(r"\d+", re.IGNORECASE)

    def test_word_pattern(self):
        pattern = PatternCache().word_pattern("loi")
        assert pattern.search("La LOI")
        assert not pattern.search("lois")


def test_correction_cache_is_case_insensitive():
    cache = CorrectionCache()
    cache.register("Ioi", "loi")
    assert cache.lookup("IOI") == "loi"


class TestJsonUtils:

    def test_strip_thinking_block(self):
        assert strip_thinking_block("<think>x</think> réponse") == "réponse"
        assert strip_thinking_block("réponse <think>incomplet") == "réponse"

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_extract_json_from_prose(self):
        assert extract_json('Voici le résultat: {"a": 1} fin') == {"a": 1}

    def test_extract_json_requires_object(self):
        with pytest.raises(ValueError):
            extract_json("[1, 2]")
        with pytest.raises(ValueError):
            extract_json("aucun json")
