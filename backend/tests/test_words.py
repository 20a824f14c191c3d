from sketchquest.game.words import (
    DEFAULT_WORDS,
    FileWordSupplier,
    StaticWordSupplier,
    build_word_supplier,
    pick_words,
)


def test_pick_words_distinct():
    for _ in range(20):
        picked = pick_words(DEFAULT_WORDS, 3)
        assert len(picked) == 3
        assert len(set(picked)) == 3
        assert set(picked) <= set(DEFAULT_WORDS)


def test_pick_words_exhausts_small_sets():
    assert sorted(pick_words(["cat", "cat", "dog"], 3)) == ["cat", "dog"]
    assert pick_words([], 3) == []


def test_static_supplier_cleans_input():
    supplier = StaticWordSupplier([" cat ", "", "cat", "dog", None])
    assert supplier.list_words() == ["cat", "dog"]


def test_file_supplier(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text("# animals\ncat\n\ndog\ncat\n", encoding="utf-8")
    supplier = FileWordSupplier(path)
    assert supplier.list_words() == ["cat", "dog"]

    path.write_text("sun\n", encoding="utf-8")
    assert supplier.list_words() == ["sun"]


def test_build_word_supplier(tmp_path):
    class Plain:
        WORDS_FILE = ""

    class FromFile:
        WORDS_FILE = str(tmp_path / "w.txt")

    assert build_word_supplier(Plain).list_words() == DEFAULT_WORDS
    assert isinstance(build_word_supplier(FromFile), FileWordSupplier)
