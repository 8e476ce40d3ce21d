import pytest

from datamapper.core import Model, StringField
from datamapper.hooks import EVENTS, HookDispatcher
from domain import Article, ArticleMapper, Tag


class Sample(Model):
    name = StringField()


class SpecialSample(Sample):
    pass


def test_global_handlers_run_before_model_handlers():
    hooks = HookDispatcher()
    calls = []
    hooks.register("after_save", lambda inst, **ctx: calls.append(("model", ctx["created"])), model=Sample)
    hooks.register("after_save", lambda inst, **ctx: calls.append(("global", ctx["created"])))

    hooks.fire("after_save", SpecialSample(), created=True)

    assert calls == [("global", True), ("model", True)]


def test_model_handlers_do_not_fire_for_unrelated_models():
    hooks = HookDispatcher()
    calls = []
    hooks.register("before_save", lambda inst, **ctx: calls.append(inst), model=SpecialSample)
    hooks.fire("before_save", Sample())
    assert calls == []


def test_unknown_event_is_rejected():
    with pytest.raises(ValueError):
        HookDispatcher().register("after_commit", lambda inst, **ctx: None)


def test_clear_removes_handlers():
    hooks = HookDispatcher()
    calls = []
    hooks.register("after_load", lambda inst, **ctx: calls.append(inst))
    hooks.clear()
    hooks.fire("after_load", Sample())
    assert calls == []
    assert EVENTS == ("after_load", "before_save", "after_save", "after_delete")


def test_after_load_fires_when_mapper_fills_model(registry, store):
    loaded = []
    registry.hooks.register("after_load", lambda inst, **ctx: loaded.append((inst.uid, ctx["mapper"])), model=Article)
    registry.hooks.register("after_load", lambda inst, **ctx: loaded.append(("tag", inst.uid)), model=Tag)
    store.seed("articles", [{"uid": 1, "title": "Post"}])
    mapper = registry.get(ArticleMapper)

    article = mapper.find(1)
    assert loaded == []
    assert article.title == "Post"
    mapper.reload(article)

    assert loaded == [(1, mapper), (1, mapper)]


def test_unregister_removes_single_handler():
    hooks = HookDispatcher()
    calls = []

    def handler(inst, **ctx):
        calls.append(inst)

    hooks.register("after_delete", handler, model=Sample)
    hooks.unregister("after_delete", handler, model=Sample)
    hooks.fire("after_delete", Sample())

    assert calls == []
    with pytest.raises(ValueError):
        hooks.unregister("after_delete", handler, model=Sample)
