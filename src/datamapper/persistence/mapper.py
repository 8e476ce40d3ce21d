"""
Data mapper binding table rows to identity-tracked models.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type

from ..core.collection import Collection
from ..core.model import Model
from ..core.relations import CommaSeparatedList, ManyToMany, ManyToOne, OneToMany, Relation, build_relation
from ..exceptions import MapperConfigurationError, NotFoundError
from ..utils import accessor_name_for_column, get_logger, int_explode, to_int
from .identity_map import IdentityMap
from .testing import TestingFramework

if TYPE_CHECKING:
    from .registry import MapperRegistry


Row = Dict[str, Any]


class DataMapper:
    """
    Maps the rows of one table to models of one class.

    Subclasses declare the table, the model class and which columns hold
    relations; the kind of each relation is taken from the schema metadata
    when the mapper is created::

        class ArticleMapper(DataMapper):
            table_name = "articles"
            model_class = Article
            relations = {"author": AuthorMapper, "comments": "app.mappers.CommentMapper"}
            additional_keys = ("slug",)

    Models handed out by a mapper are unique per UID. Models requested by
    UID start out as ghosts and are loaded on first access to their data.

    Saving is not transactional: a save writes the model's row first and
    then cascades to one-to-many children and junction tables, each write
    on its own. A failure part way through leaves the earlier writes in
    place.
    """

    table_name: str = ""
    model_class: Optional[Type[Model]] = None
    relations: Mapping[str, Any] = {}
    additional_keys: Sequence[str] = ()
    compound_key_parts: Sequence[str] = ()
    default_sorting: str = ""

    def __init__(self, registry: "MapperRegistry") -> None:
        if not self.table_name:
            raise ValueError(f"{type(self).__qualname__}.table_name must not be empty.")
        if not (isinstance(self.model_class, type) and issubclass(self.model_class, Model)):
            raise ValueError(f"{type(self).__qualname__}.model_class must be a model class.")

        self.registry = registry
        self.identity_map = IdentityMap()
        self.logger = get_logger("persistence.mapper")
        self._lock = registry.lock
        self._memory_only_uids: set[int] = set()
        self._cache_by_key: Dict[str, Dict[str, Model]] = {key: {} for key in self.additional_keys}
        self._cache_by_compound_key: Dict[str, Model] = {}
        self._deny_database_access = False
        self._testing_framework: Optional[TestingFramework] = None
        self._relations: Dict[str, Relation] = {
            key: build_relation(key, mapper, registry.schema.get_column(self.table_name, key))
            for key, mapper in self.relations.items()
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} table={self.table_name!r}>"

    @property
    def store(self):
        return self.registry.store

    def get_relation(self, key: str) -> Relation:
        try:
            return self._relations[key]
        except KeyError as exc:
            raise MapperConfigurationError(f'"{key}" is no relation of the table {self.table_name}.') from exc

    # ------------------------------------------------------------------ #
    # Retrieval
    # ------------------------------------------------------------------ #
    def find(self, uid: int) -> Model:
        """
        Return the model with the given UID, creating a ghost if necessary.

        This does not check whether a matching record exists.
        """

        with self._lock:
            try:
                return self.identity_map.get(uid)
            except NotFoundError:
                return self._create_ghost(uid)

    def get_model(self, data: Mapping[str, Any]) -> Model:
        """
        Return the model for a row, filling it from the row if it is a ghost.

        Models that already have been loaded keep their data.
        """

        if not data.get("uid"):
            raise ValueError('The data must contain an element "uid".')

        with self._lock:
            model = self.find(to_int(data["uid"]))
            if model.is_ghost():
                self._fill_model(model, dict(data))
        return model

    def get_list_of_models(self, rows: Iterable[Mapping[str, Any]]) -> Collection:
        collection = Collection()
        for row in rows:
            collection.add(self.get_model(row))
        return collection

    def exists_model(self, uid: int, allow_hidden: bool = False) -> bool:
        model = self.find(uid)
        if model.is_ghost():
            self.load(model)
        return model.is_loaded() and (allow_hidden or not model.is_hidden())

    def _find_single(self, filters: Mapping[str, Any]) -> Model:
        if not filters:
            raise ValueError("The filters must not be empty.")
        return self.get_model(self._retrieve_record(filters))

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #
    def load(self, model: Model) -> None:
        """
        Fill a ghost from its record, or mark it as dead if there is none.
        """

        self._check_loadable(model)
        with self._lock:
            try:
                data = self._retrieve_record_by_uid(model.uid)
            except NotFoundError:
                self.logger.debug(
                    "No %s record with UID %s; marking model as dead",
                    self.table_name,
                    model.uid,
                    extra={"table": self.table_name},
                )
                model.mark_as_dead()
                return
            self._fill_model(model, data)

    def reload(self, model: Model) -> None:
        """
        Overwrite a model's data with its current record, discarding changes.
        """

        self._check_loadable(model)
        with self._lock:
            try:
                data = self._retrieve_record_by_uid(model.uid)
            except NotFoundError:
                model.mark_as_dead()
                return
            self._refill_model(model, data)

    def _check_loadable(self, model: Model) -> None:
        if self._is_memory_only_dummy(model):
            raise ValueError("This ghost was created via get_new_ghost and must not be loaded.")
        if not model.has_uid():
            raise ValueError("load must only be called with models that already have a UID.")

    def _fill_model(self, model: Model, data: Row) -> None:
        self._cache_model_by_keys(model, data)
        self._create_relations(data, model)
        model.set_data(data)
        self.registry.hooks.fire("after_load", model, mapper=self)

    def _refill_model(self, model: Model, data: Row) -> None:
        self._cache_model_by_keys(model, data)
        self._create_relations(data, model)
        model.reset_data(data)
        self.registry.hooks.fire("after_load", model, mapper=self)

    def _create_ghost(self, uid: int) -> Model:
        model = self.model_class()
        model.set_uid(uid)
        model.set_load_callback(self.load)
        self.identity_map.add(model)
        return model

    def get_new_ghost(self) -> Model:
        """
        Create a ghost with an unused UID that only exists in memory.
        """

        with self._lock:
            model = self._create_ghost(self.identity_map.get_new_uid())
            self._memory_only_uids.add(model.uid)
        return model

    def get_loaded_testing_model(self, data: Mapping[str, Any]) -> Model:
        with self._lock:
            model = self.get_new_ghost()
            self._fill_model(model, dict(data))
        return model

    def _is_memory_only_dummy(self, model: Model) -> bool:
        return model.has_uid() and model.uid in self._memory_only_uids

    # ------------------------------------------------------------------ #
    # Relations
    # ------------------------------------------------------------------ #
    def _related_mapper(self, relation: Relation) -> "DataMapper":
        return self.registry.get(relation.mapper)

    def _create_relations(self, data: Row, model: Model) -> None:
        for relation in self._relations.values():
            if isinstance(relation, OneToMany):
                self._create_one_to_many_relation(data, relation, model)
            elif isinstance(relation, ManyToOne):
                self._create_many_to_one_relation(data, relation)
            elif isinstance(relation, ManyToMany):
                self._create_many_to_many_relation(data, relation, model)
            else:
                self._create_comma_separated_relation(data, relation, model)

    def _create_one_to_many_relation(self, data: Row, relation: OneToMany, model: Model) -> None:
        value = data.get(relation.key)
        if isinstance(value, Collection):
            children = value
        else:
            rows: List[Row] = []
            if to_int(value) > 0:
                if self._is_memory_only_dummy(model):
                    raise ValueError(
                        "This is a memory-only dummy which must not load any one-to-many relations."
                    )
                order_by = (relation.order_by,) if relation.order_by else ()
                parent_uid = to_int(data.get("uid", model.uid))
                rows = self._select_rows(
                    relation.foreign_table, {relation.foreign_field: parent_uid}, order_by=order_by
                )
            children = self._related_mapper(relation).get_list_of_models(rows)

        children.set_parent_model(model)
        children.mark_as_owned_by_parent()
        data[relation.key] = children

    def _create_many_to_one_relation(self, data: Row, relation: ManyToOne) -> None:
        value = data.get(relation.key)
        if isinstance(value, Model) or value is None:
            data[relation.key] = value
            return
        uid = to_int(value)
        data[relation.key] = self._related_mapper(relation).find(uid) if uid > 0 else None

    def _create_many_to_many_relation(self, data: Row, relation: ManyToMany, model: Model) -> None:
        value = data.get(relation.key)
        if isinstance(value, Collection):
            value.set_parent_model(model)
            return

        related = Collection()
        related.set_parent_model(model)
        if to_int(value) > 0:
            mapper = self._related_mapper(relation)
            rows = self._select_rows(
                relation.table,
                {relation.own_column: to_int(data.get("uid", model.uid))},
                order_by=(relation.order_column,),
            )
            for row in rows:
                related_uid = to_int(row.get(relation.related_column))
                # Junction tables sometimes contain a junk 0; skip it.
                if related_uid <= 0:
                    continue
                related.add(mapper.find(related_uid))

        data[relation.key] = related

    def _create_comma_separated_relation(self, data: Row, relation: CommaSeparatedList, model: Model) -> None:
        value = data.get(relation.key)
        if isinstance(value, Collection):
            value.set_parent_model(model)
            return

        related = Collection()
        related.set_parent_model(model)
        uids = [uid for uid in int_explode(value) if uid > 0]
        if uids:
            mapper = self._related_mapper(relation)
            for uid in uids:
                related.add(mapper.find(uid))

        data[relation.key] = related

    # ------------------------------------------------------------------ #
    # Storage access
    # ------------------------------------------------------------------ #
    def disable_database_access(self) -> None:
        self._deny_database_access = True

    def has_database_access(self) -> bool:
        return not self._deny_database_access and self.store is not None

    def set_testing_framework(self, testing_framework: TestingFramework) -> None:
        self._testing_framework = testing_framework

    def _enable_filters(self, table: str, *, allow_hidden: bool = False) -> Dict[str, Any]:
        definition = self.registry.schema.find_table(table)
        if definition is None:
            return {}
        filters: Dict[str, Any] = {}
        if definition.delete_column:
            filters[definition.delete_column] = 0
        if definition.hidden_column and not allow_hidden:
            filters[definition.hidden_column] = 0
        return filters

    def _select_rows(
        self,
        table: str,
        filters: Mapping[str, Any],
        *,
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
        allow_hidden: bool = False,
    ) -> List[Row]:
        if not self.has_database_access():
            return []
        combined = dict(self._enable_filters(table, allow_hidden=allow_hidden))
        combined.update(filters)
        return self.store.select_filtered(table, combined, order_by=order_by, limit=limit)

    def _retrieve_record(self, filters: Mapping[str, Any]) -> Row:
        if not self.has_database_access():
            raise NotFoundError(
                "No record can be retrieved from the database because database access is disabled "
                "for this mapper instance."
            )
        # Single records are read regardless of the hidden flag.
        rows = self._select_rows(self.table_name, filters, limit=1, allow_hidden=True)
        if not rows:
            raise NotFoundError(
                f'No records found in the table "{self.table_name}" matching: {json.dumps(dict(filters), default=str)}'
            )
        return rows[0]

    def _retrieve_record_by_uid(self, uid: int) -> Row:
        return self._retrieve_record({"uid": uid})

    # ------------------------------------------------------------------ #
    # Saving
    # ------------------------------------------------------------------ #
    def save(self, model: Model) -> None:
        """
        Write a loaded, dirty and writable model to its table.

        Related models reachable through to-one and list relations are saved
        first; one-to-many children and junction rows are written after the
        model has been marked as clean.
        """

        if self._is_memory_only_dummy(model):
            raise ValueError("This model is a memory-only dummy that must not be saved.")

        with self._lock:
            if (
                not self.has_database_access()
                or not model.is_dirty()
                or not model.is_loaded()
                or model.is_read_only()
            ):
                return

            self.registry.hooks.fire("before_save", model, mapper=self)
            data = self._get_prepared_model_data(model)
            self._cache_model_by_keys(model, data)

            created = not model.has_uid()
            if created:
                self._prepare_data_for_new_record(data)
                model.set_uid(self.store.insert(self.table_name, data))
                self.identity_map.add(model)
                self.logger.debug(
                    "Inserted %s record %s", self.table_name, model.uid, extra={"table": self.table_name}
                )
            else:
                self.store.update(self.table_name, data, model.uid)
                self.logger.debug(
                    "Updated %s record %s", self.table_name, model.uid, extra={"table": self.table_name}
                )

            if model.is_deleted():
                self._delete_many_to_many_junction_records(model)
                model.mark_as_dead()
            else:
                # Marking the model as clean before the cascade keeps children
                # that point back at it from saving it again.
                model.mark_as_clean()
                self._save_one_to_many_relation_records(model)
                self._synchronize_many_to_many_junction_records(model)
            self.registry.hooks.fire("after_save", model, mapper=self, created=created)

    def _get_prepared_model_data(self, model: Model) -> Row:
        now = self.registry.clock()
        if not model.has_uid():
            model.set_creation_date(now)
        model.set_timestamp(now)

        data = model.get_data()
        for key, relation in self._relations.items():
            value = data.get(key)
            related_mapper = self._related_mapper(relation)
            if isinstance(relation, OneToMany):
                data[key] = value.count() if isinstance(value, Collection) else 0
            elif isinstance(relation, ManyToOne):
                if isinstance(value, Model):
                    related_mapper.save(value)
                    data[key] = value.uid or 0
                else:
                    data[key] = 0
            elif isinstance(value, Collection):
                for related_model in value:
                    related_mapper.save(related_model)
                if isinstance(relation, ManyToMany):
                    data[key] = value.count()
                else:
                    data[key] = value.uids_as_string()
            else:
                data[key] = 0

        for key, value in data.items():
            if isinstance(value, bool):
                data[key] = int(value)
        return data

    def _prepare_data_for_new_record(self, data: Row) -> None:
        if self._testing_framework is None:
            return
        self._testing_framework.mark_table_as_dirty(self.table_name)
        data[self._testing_framework.get_dummy_column_name(self.table_name)] = 1

    def _foreign_key_accessor(self, model_class: Type[Model], foreign_field: str) -> str:
        field_obj = model_class._meta.field_for_column(foreign_field)
        if field_obj is None:
            field_obj = model_class._meta.fields.get(accessor_name_for_column(foreign_field))
        if field_obj is None:
            raise MapperConfigurationError(
                f"The class {model_class.__qualname__} is missing an accessor for {foreign_field}, "
                "which is needed for saving a one-to-many relation."
            )
        return field_obj.require_name()

    def _save_one_to_many_relation_records(self, model: Model) -> None:
        data = model.get_data()
        for key, relation in self._relations.items():
            if not isinstance(relation, OneToMany):
                continue
            children = data.get(key)
            if not isinstance(children, Collection):
                continue

            related_mapper = self._related_mapper(relation)
            accessor = self._foreign_key_accessor(related_mapper.model_class, relation.foreign_field)
            members = children.to_list()
            for child in members:
                # Only set the parent if this changes anything, so unchanged
                # children stay clean.
                if getattr(child, accessor) is not model:
                    setattr(child, accessor, model)
                related_mapper.save(child)

            # An empty collection never removes children.
            if children.is_owned_by_parent() and members:
                orphans = related_mapper.find_all_by_relation(model, relation.foreign_field, members)
                for orphan in orphans:
                    related_mapper.delete(orphan)

    def _many_to_many_relations(self) -> List[ManyToMany]:
        return [relation for relation in self._relations.values() if isinstance(relation, ManyToMany)]

    def _delete_many_to_many_junction_records(self, model: Model) -> None:
        for relation in self._many_to_many_relations():
            self.store.delete(relation.table, {relation.own_column: model.uid})

    def _synchronize_many_to_many_junction_records(self, model: Model) -> None:
        data = model.get_data()
        for relation in self._many_to_many_relations():
            related = data.get(relation.key)
            if not isinstance(related, Collection):
                continue
            self.store.delete(relation.table, {relation.own_column: model.uid})
            for sorting, related_model in enumerate(related.to_list()):
                row = {
                    relation.own_column: model.uid,
                    relation.related_column: related_model.uid,
                    "sorting": sorting,
                }
                self._prepare_junction_record(relation.table, row)
                self.store.insert(relation.table, row)

    def _prepare_junction_record(self, table: str, row: Row) -> None:
        if self._testing_framework is None:
            return
        self._testing_framework.mark_table_as_dirty(table)
        row[self._testing_framework.get_dummy_column_name(table)] = 1

    # ------------------------------------------------------------------ #
    # Deleting
    # ------------------------------------------------------------------ #
    def delete(self, model: Model) -> None:
        """
        Mark a model and its one-to-many children as deleted and save them.

        Rows are flagged through the ``deleted`` column, not removed.
        """

        if self._is_memory_only_dummy(model):
            raise ValueError("This model is a memory-only dummy that must not be deleted.")
        if model.is_read_only():
            raise ValueError("This model is read-only and must not be deleted.")
        if model.is_dead():
            return

        with self._lock:
            if model.has_uid():
                if not model.is_loaded():
                    self.load(model)
                model.set_to_deleted()
                self.save(model)
                self._delete_one_to_many_relations(model)
            model.mark_as_dead()
        self.registry.hooks.fire("after_delete", model, mapper=self)

    def _delete_one_to_many_relations(self, model: Model) -> None:
        data = model.get_data()
        for key, relation in self._relations.items():
            if not isinstance(relation, OneToMany):
                continue
            children = data.get(key)
            if not isinstance(children, Collection):
                continue
            related_mapper = self._related_mapper(relation)
            for child in children.to_list():
                related_mapper.delete(child)

    # ------------------------------------------------------------------ #
    # Finders
    # ------------------------------------------------------------------ #
    def _order_by(self, sorting: str) -> Tuple[str, ...]:
        sorting = sorting.strip() or self.default_sorting.strip()
        if not sorting:
            definition = self.registry.schema.find_table(self.table_name)
            sorting = definition.default_sortby.strip() if definition else ""

        terms: List[str] = []
        for part in sorting.split(","):
            words = part.split()
            if not words:
                continue
            column = words[0]
            descending = len(words) > 1 and words[1].upper() == "DESC"
            terms.append(f"-{column}" if descending else column)
        return tuple(terms)

    def find_all(self, sorting: str = "") -> Collection:
        rows = self._select_rows(self.table_name, {}, order_by=self._order_by(sorting))
        return self.get_list_of_models(rows)

    @staticmethod
    def _page_filters(page_uids: Any) -> Dict[str, Any]:
        if page_uids in (None, "", "0", 0):
            return {}
        if isinstance(page_uids, (list, tuple, set, frozenset)):
            uids = [to_int(uid) for uid in page_uids]
        else:
            uids = int_explode(page_uids)
        return {"pid__in": uids}

    def find_by_page_uid(self, page_uids: Any, sorting: str = "") -> Collection:
        """
        Find the models on the given pages (a UID, a comma-separated list or
        a sequence); no page restriction is applied for an empty value or 0.
        """

        rows = self._select_rows(
            self.table_name, self._page_filters(page_uids), order_by=self._order_by(sorting)
        )
        return self.get_list_of_models(rows)

    def count_by_page_uid(self, page_uids: Any) -> int:
        if not self.has_database_access():
            return 0
        filters = dict(self._enable_filters(self.table_name))
        filters.update(self._page_filters(page_uids))
        return self.store.count(self.table_name, filters)

    def find_all_by_relation(
        self,
        model: Model,
        relation_key: str,
        ignore: Optional[Iterable[Model]] = None,
    ) -> Collection:
        """
        Find the models whose ``relation_key`` column points at ``model``,
        leaving out the models in ``ignore``.
        """

        if not model.has_uid():
            raise ValueError("The model must have a UID.")
        if not relation_key:
            raise ValueError("The relation key must not be empty.")

        filters: Dict[str, Any] = {relation_key: model.uid}
        ignored_uids = [ignored.uid for ignored in ignore or () if ignored.has_uid()]
        if ignored_uids:
            filters["uid__not_in"] = ignored_uids
        return self.get_list_of_models(self._select_rows(self.table_name, filters))

    # ------------------------------------------------------------------ #
    # Key caches
    # ------------------------------------------------------------------ #
    def _cache_model_by_keys(self, model: Model, data: Mapping[str, Any]) -> None:
        for key in self.additional_keys:
            value = data.get(key)
            if value is not None and value != "":
                self._cache_by_key[key][str(value)] = model

        self._cache_model_by_combined_keys(model, data)
        if self.compound_key_parts:
            self._cache_model_by_compound_key(model, data)

    def _cache_model_by_combined_keys(self, model: Model, data: Mapping[str, Any]) -> None:
        """
        Hook for subclasses that cache models by keys of their own.
        """

    def _cache_model_by_compound_key(self, model: Model, data: Mapping[str, Any]) -> None:
        values = [data[key] for key in self.compound_key_parts if data.get(key) is not None]
        if len(values) != len(self.compound_key_parts):
            return
        value = ".".join(str(part) for part in values)
        if value != "":
            self._cache_by_compound_key[value] = model

    def find_one_by_key_from_cache(self, key: str, value: str) -> Model:
        if key == "":
            raise ValueError("The key must not be empty.")
        if key not in self._cache_by_key:
            raise ValueError(f'"{key}" is not a valid key for this mapper.')
        if value == "":
            raise ValueError("The value must not be empty.")

        try:
            return self._cache_by_key[key][str(value)]
        except KeyError:
            raise NotFoundError(f'No {self.table_name} model with {key} "{value}" is cached.') from None

    def find_one_by_key(self, key: str, value: str) -> Model:
        try:
            return self.find_one_by_key_from_cache(key, value)
        except NotFoundError:
            return self._find_single({key: value})

    def find_one_by_compound_key_from_cache(self, value: str) -> Model:
        if value == "":
            raise ValueError("The value must not be empty.")

        try:
            return self._cache_by_compound_key[value]
        except KeyError:
            raise NotFoundError(f'No {self.table_name} model with the compound key "{value}" is cached.') from None

    def find_one_by_compound_key(self, values: Mapping[str, Any]) -> Model:
        if not values:
            raise ValueError(f"{type(self).__qualname__} needs compound key values.")

        try:
            return self.find_one_by_compound_key_from_cache(self._extract_compound_key_values(values))
        except NotFoundError:
            return self._find_single(values)

    def _extract_compound_key_values(self, values: Mapping[str, Any]) -> str:
        parts = []
        for key in self.compound_key_parts:
            if values.get(key) is None:
                raise ValueError(f"{type(self).__qualname__}: the key values do not contain all compound keys.")
            parts.append(str(values[key]))
        return ".".join(parts)
