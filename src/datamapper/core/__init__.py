"""
Core building blocks: models, field accessors, collections and relations.
"""

from .collection import Collection
from .fields import (
    BooleanField,
    CollectionField,
    Field,
    FloatField,
    IntegerField,
    ModelField,
    StringField,
)
from .model import LoadStatus, Model, ModelMeta, ModelOptions
from .relations import CommaSeparatedList, ManyToMany, ManyToOne, OneToMany, Relation, build_relation

__all__ = [
    "BooleanField",
    "Collection",
    "CollectionField",
    "CommaSeparatedList",
    "Field",
    "FloatField",
    "IntegerField",
    "LoadStatus",
    "ManyToMany",
    "ManyToOne",
    "Model",
    "ModelField",
    "ModelMeta",
    "ModelOptions",
    "OneToMany",
    "Relation",
    "StringField",
    "build_relation",
]
