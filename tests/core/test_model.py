import pytest

from datamapper.core import IntegerField, LoadStatus, Model, StringField
from datamapper.exceptions import BadMethodCallError, NotFoundError


class Book(Model):
    title = StringField()
    pages = IntegerField()


class FrozenBook(Book):
    class Meta:
        read_only = True


def make_ghost(uid=42, data=None, dead=False):
    book = Book()
    book.set_uid(uid)

    def load(model):
        if dead:
            model.mark_as_dead()
        else:
            model.set_data(data or {})

    book.set_load_callback(load)
    return book


def test_new_model_is_virgin_without_uid():
    book = Book()
    assert book.is_virgin()
    assert book.uid is None
    assert not book.has_uid()


def test_setting_uid_turns_virgin_into_ghost():
    book = Book()
    book.set_uid(5)
    assert book.is_ghost()
    assert book.uid == 5


def test_uid_cannot_be_set_twice():
    book = Book()
    book.set_uid(5)
    with pytest.raises(BadMethodCallError):
        book.set_uid(6)


def test_set_data_without_uid_leaves_model_loaded_and_dirty():
    book = Book()
    book.set_data({"title": "Dune"})
    assert book.is_loaded()
    assert book.is_dirty()
    assert book.title == "Dune"


def test_set_data_takes_uid_from_data_and_marks_clean():
    book = Book()
    book.set_data({"uid": "7", "title": "Dune"})
    assert book.uid == 7
    assert book.is_loaded()
    assert not book.is_dirty()
    assert "uid" not in book.get_data()


def test_set_data_must_only_be_called_once():
    book = Book()
    book.set_data({"title": "Dune"})
    with pytest.raises(BadMethodCallError):
        book.set_data({"title": "Emma"})


def test_reset_data_replaces_loaded_data():
    book = Book()
    book.set_data({"uid": 1, "title": "Dune"})
    book.title = "Changed"
    book.reset_data({"title": "Dune"})
    assert book.title == "Dune"
    assert not book.is_dirty()


def test_reading_a_ghost_calls_the_load_callback():
    book = make_ghost(data={"title": "Dune", "pages": "412"})
    assert book.is_ghost()
    assert book.title == "Dune"
    assert book.pages == 412
    assert book.is_loaded()


def test_reading_a_virgin_model_raises():
    with pytest.raises(BadMethodCallError):
        Book().title


def test_reading_a_ghost_without_callback_raises():
    book = Book()
    book.set_uid(3)
    with pytest.raises(BadMethodCallError):
        book.title


def test_reading_a_dead_model_raises_not_found():
    book = make_ghost(dead=True)
    with pytest.raises(NotFoundError):
        book.title
    assert book.is_dead()


def test_writing_a_ghost_loads_it_first():
    book = make_ghost(data={"title": "Dune", "pages": 412})
    book.title = "Changed"
    assert book.pages == 412
    assert book.title == "Changed"
    assert book.is_dirty()


def test_uid_is_not_a_data_key():
    book = make_ghost()
    with pytest.raises(ValueError):
        book._get("uid")


def test_deleted_flag_cannot_be_set_directly():
    book = Book()
    book.set_data({})
    with pytest.raises(ValueError):
        book._set("deleted", True)


def test_read_only_models_reject_writes():
    book = FrozenBook()
    book.set_data({"uid": 1, "title": "Dune"})
    assert book.is_read_only()
    with pytest.raises(BadMethodCallError):
        book.title = "Changed"


def test_set_to_deleted_on_loaded_model_sets_flag():
    book = Book()
    book.set_data({"uid": 1})
    book.set_to_deleted()
    assert book.is_deleted()
    assert book.is_dirty()
    assert book.is_loaded()


def test_set_to_deleted_on_ghost_marks_dead():
    book = make_ghost()
    book.set_to_deleted()
    assert book.is_dead()


def test_mark_as_dead_also_cleans():
    book = Book()
    book.set_data({"title": "Dune"})
    book.mark_as_dead()
    assert book.is_dead()
    assert not book.is_dirty()


def test_hidden_flag_round_trip():
    book = Book()
    book.set_data({"uid": 1, "hidden": "0"})
    assert not book.is_hidden()
    book.mark_as_hidden()
    assert book.is_hidden()
    book.mark_as_visible()
    assert not book.is_hidden()


def test_creation_date_only_for_new_models():
    book = Book()
    book.set_data({})
    book.set_creation_date(100)
    assert book.creation_date == 100

    stored = Book()
    stored.set_data({"uid": 1})
    with pytest.raises(BadMethodCallError):
        stored.set_creation_date(100)


def test_timestamp_and_page_uid():
    book = Book()
    book.set_data({"uid": 1, "pid": "3"})
    book.set_timestamp(200)
    assert book.modification_date == 200
    assert book.page_uid == 3
    book.page_uid = 0
    assert book.page_uid == 0
    with pytest.raises(ValueError):
        book.page_uid = -1


def test_is_empty_loads_ghost():
    assert make_ghost(data={}).is_empty()
    assert not make_ghost(data={"title": "Dune"}).is_empty()


def test_load_status_values_are_ordered():
    assert LoadStatus.VIRGIN < LoadStatus.GHOST < LoadStatus.LOADING < LoadStatus.LOADED < LoadStatus.DEAD


def test_loading_status_is_visible_inside_callback():
    seen = []
    book = Book()
    book.set_uid(1)

    def load(model):
        seen.append(model.is_loading())
        model.set_data({})

    book.set_load_callback(load)
    book.title
    assert seen == [True]
