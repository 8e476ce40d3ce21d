import pytest

from datamapper import Collection
from datamapper.exceptions import NotFoundError
from domain import Article, ArticleMapper, Comment, CommentMapper


@pytest.fixture
def mapper(registry):
    return registry.get(ArticleMapper)


def seed_articles(store, *rows):
    store.seed("articles", rows)


def test_find_returns_ghost_without_querying(mapper, store):
    seed_articles(store, {"uid": 1, "title": "First"})
    article = mapper.find(1)
    assert isinstance(article, Article)
    assert article.is_ghost()
    assert article.uid == 1


def test_find_returns_same_instance_for_same_uid(mapper):
    assert mapper.find(3) is mapper.find(3)


def test_ghost_loads_lazily_on_first_access(mapper, store):
    seed_articles(store, {"uid": 1, "title": "First", "header": "Intro"})
    article = mapper.find(1)
    assert article.title == "First"
    assert article.header == "Intro"
    assert article.is_loaded()
    assert not article.is_dirty()


def test_ghost_without_record_becomes_dead(mapper):
    article = mapper.find(99)
    with pytest.raises(NotFoundError):
        article.title
    assert article.is_dead()


def test_soft_deleted_record_is_not_loaded(mapper, store):
    seed_articles(store, {"uid": 1, "title": "Gone", "deleted": 1})
    article = mapper.find(1)
    mapper.load(article)
    assert article.is_dead()


def test_get_model_requires_uid(mapper):
    with pytest.raises(ValueError):
        mapper.get_model({"title": "No UID"})
    with pytest.raises(ValueError):
        mapper.get_model({"uid": 0})


def test_get_model_fills_ghost_from_row(mapper):
    ghost = mapper.find(5)
    model = mapper.get_model({"uid": 5, "title": "From row"})
    assert model is ghost
    assert model.title == "From row"


def test_get_model_keeps_already_loaded_data(mapper, store):
    seed_articles(store, {"uid": 1, "title": "Stored"})
    article = mapper.find(1)
    article.title = "Edited"
    assert mapper.get_model({"uid": 1, "title": "Other"}) is article
    assert article.title == "Edited"


def test_get_list_of_models_preserves_row_order(mapper):
    collection = mapper.get_list_of_models([{"uid": 2}, {"uid": 1}, {"uid": 2}])
    assert isinstance(collection, Collection)
    assert collection.get_uids() == [2, 1]


def test_exists_model(mapper, store):
    seed_articles(
        store,
        {"uid": 1, "title": "Visible"},
        {"uid": 2, "title": "Hidden", "hidden": 1},
    )
    assert mapper.exists_model(1)
    assert not mapper.exists_model(2)
    assert mapper.exists_model(2, allow_hidden=True)
    assert not mapper.exists_model(3)


def test_load_rejects_models_without_uid(mapper):
    with pytest.raises(ValueError):
        mapper.load(Article())


def test_reload_discards_local_changes(mapper, store):
    seed_articles(store, {"uid": 1, "title": "Stored"})
    article = mapper.find(1)
    article.title = "Edited"
    mapper.reload(article)
    assert article.title == "Stored"
    assert not article.is_dirty()


def test_reload_of_removed_record_marks_dead(mapper, store):
    seed_articles(store, {"uid": 1, "title": "Stored"})
    article = mapper.find(1)
    assert article.title == "Stored"
    store.delete("articles", {"uid": 1})
    mapper.reload(article)
    assert article.is_dead()


def test_find_all_uses_schema_default_sorting(mapper, store):
    seed_articles(
        store,
        {"uid": 1, "title": "Charlie"},
        {"uid": 2, "title": "Alpha"},
        {"uid": 3, "title": "Bravo"},
        {"uid": 4, "title": "Deleted", "deleted": 1},
    )
    assert mapper.find_all().get_uids() == [2, 3, 1]
    assert mapper.find_all("title DESC").get_uids() == [1, 3, 2]
    assert mapper.find_all("uid").get_uids() == [1, 2, 3]


def test_mapper_default_sorting_wins_over_schema(registry, store):
    class NewestFirstMapper(ArticleMapper):
        default_sorting = "uid DESC"

    seed_articles(store, {"uid": 1, "title": "A"}, {"uid": 2, "title": "B"})
    assert registry.get(NewestFirstMapper).find_all().get_uids() == [2, 1]


def test_find_by_page_uid(mapper, store):
    seed_articles(
        store,
        {"uid": 1, "title": "A", "pid": 10},
        {"uid": 2, "title": "B", "pid": 20},
        {"uid": 3, "title": "C", "pid": 30},
    )
    assert mapper.find_by_page_uid("10,30").get_uids() == [1, 3]
    assert mapper.find_by_page_uid(20).get_uids() == [2]
    assert mapper.find_by_page_uid([20, 30], "title DESC").get_uids() == [3, 2]
    assert mapper.find_by_page_uid("").get_uids() == [1, 2, 3]
    assert mapper.find_by_page_uid(0).get_uids() == [1, 2, 3]


def test_count_by_page_uid(mapper, store):
    seed_articles(
        store,
        {"uid": 1, "pid": 10},
        {"uid": 2, "pid": 10},
        {"uid": 3, "pid": 10, "deleted": 1},
        {"uid": 4, "pid": 20},
    )
    assert mapper.count_by_page_uid("10") == 2
    assert mapper.count_by_page_uid("10,20") == 3
    assert mapper.count_by_page_uid(0) == 3


def test_find_all_by_relation_skips_ignored_models(registry, store):
    comments = registry.get(CommentMapper)
    article = registry.get(ArticleMapper).get_model({"uid": 1, "title": "Parent"})
    store.seed(
        "comments",
        [
            {"uid": 1, "article": 1},
            {"uid": 2, "article": 1},
            {"uid": 3, "article": 2},
        ],
    )
    assert comments.find_all_by_relation(article, "article").get_uids() == [1, 2]
    assert comments.find_all_by_relation(article, "article", [comments.find(1)]).get_uids() == [2]


def test_find_all_by_relation_validates_arguments(registry):
    comments = registry.get(CommentMapper)
    with pytest.raises(ValueError):
        comments.find_all_by_relation(Article(), "article")
    with pytest.raises(ValueError):
        comments.find_all_by_relation(registry.get(ArticleMapper).find(1), "")


def test_denied_database_access_returns_nothing(registry, store):
    seed_articles(store, {"uid": 1, "title": "Stored"})
    registry.deny_database_access()
    mapper = registry.get(ArticleMapper)

    assert not mapper.exists_model(1)
    assert mapper.find_all().is_empty()
    assert mapper.count_by_page_uid(0) == 0


def test_new_ghost_gets_unused_memory_only_uid(mapper):
    mapper.find(41)
    ghost = mapper.get_new_ghost()
    assert ghost.uid == 42
    assert ghost.is_ghost()
    assert mapper.find(42) is ghost
    with pytest.raises(ValueError):
        mapper.load(ghost)


def test_loaded_testing_model_is_memory_only(mapper, store):
    model = mapper.get_loaded_testing_model({"title": "Dummy"})
    assert model.is_loaded()
    assert model.title == "Dummy"
    assert model.has_uid()

    model.title = "Changed"
    with pytest.raises(ValueError):
        mapper.save(model)
    with pytest.raises(ValueError):
        mapper.delete(model)
    assert store.writes == []


def test_row_from_store_reuses_colliding_memory_only_dummy(mapper):
    dummy = mapper.get_new_ghost()
    assert dummy.uid == 1

    model = mapper.get_model({"uid": 1, "title": "From store"})

    assert model is dummy
    assert model.title == "From store"


def test_comment_mapper_hands_out_comment_models(registry, store):
    store.seed("comments", [{"uid": 1, "text": "Nice"}])
    comment = registry.get(CommentMapper).find(1)
    assert isinstance(comment, Comment)
    assert comment.text == "Nice"
    assert comment.article is None


def test_get_model_first_write_wins(mapper):
    first = mapper.get_model({"uid": 1, "title": "a"})
    second = mapper.get_model({"uid": 1, "title": "b"})
    assert first is second
    assert first.title == "a"


def test_finders_skip_hidden_records(mapper, store):
    seed_articles(
        store,
        {"uid": 1, "title": "Visible", "pid": 10},
        {"uid": 2, "title": "Hidden", "pid": 10, "hidden": 1},
    )
    assert mapper.find_all().get_uids() == [1]
    assert mapper.find_by_page_uid(10).get_uids() == [1]
    assert mapper.count_by_page_uid(10) == 1
    assert mapper.count_by_page_uid(0) == 1


def test_hidden_record_still_loads_by_uid(mapper, store):
    seed_articles(store, {"uid": 2, "title": "Hidden", "hidden": 1})
    article = mapper.find(2)
    assert article.title == "Hidden"
    assert article.is_hidden()


def test_find_all_by_relation_skips_hidden_models(registry, store):
    comments = registry.get(CommentMapper)
    article = registry.get(ArticleMapper).get_model({"uid": 1, "title": "Parent"})
    store.seed(
        "comments",
        [
            {"uid": 10, "article": 1},
            {"uid": 11, "article": 1, "hidden": 1},
        ],
    )
    assert comments.find_all_by_relation(article, "article").get_uids() == [10]
