"""Document base class mapping Python classes onto content store documents."""

from __future__ import annotations

import threading
import types
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Sequence, Type, TypeVar

from content_store import Query, StoreClient, StoreDocument, get_store_client
from loguru import logger

from .query import QueryResult
from .type_helper import default_type

D = TypeVar("D", bound="Document")

# Serializes writes to ``document_type`` across threads.
_DOCUMENT_TYPE_LOCK = threading.Lock()


class DocumentMeta(type):
    """
    Metaclass for document classes.

    ``document_type`` is stored in each class's own namespace, so a subclass
    starts without an override even when its parent has one. It can be given
    at definition time, as a class keyword or in the class body::

        class Author(Document, document_type="person"):
            ...

        class Editor(Document):
            document_type = "staff"
    """

    def __new__(mcls, name, bases, namespace, document_type: Optional[str] = None, **kwargs):
        # A class-body assignment would be hidden behind the property below.
        body_type = namespace.pop("document_type", None)
        if body_type is not None and document_type is not None:
            raise TypeError(f"{name} sets document_type both in its body and as a class keyword")
        cls = super().__new__(mcls, name, bases, namespace, **kwargs)
        cls.document_type = document_type if document_type is not None else body_type
        return cls

    def __init__(cls, name, bases, namespace, document_type: Optional[str] = None, **kwargs):
        super().__init__(name, bases, namespace, **kwargs)

    @property
    def document_type(cls) -> Optional[str]:
        return cls.__dict__.get("_document_type")

    @document_type.setter
    def document_type(cls, value: Optional[str]) -> None:
        if value is not None and not isinstance(value, str):
            raise TypeError(f"document_type must be a string or None, not {type(value).__name__}")
        with _DOCUMENT_TYPE_LOCK:
            type.__setattr__(cls, "_document_type", value)


class _entity_operation:
    """
    Method that exists on both the class and its instances.

    ``Post.create(title=...)`` runs the class-level function with the class,
    ``post.create()`` runs the instance-level one registered via ``.instance``.
    """

    def __init__(self, class_func: Callable[..., Any]) -> None:
        self._class_func = class_func
        self._instance_func: Optional[Callable[..., Any]] = None
        self.__doc__ = class_func.__doc__

    def instance(self, func: Callable[..., Any]) -> "_entity_operation":
        self._instance_func = func
        return self

    def __get__(self, obj: Any, owner: Optional[type] = None) -> Callable[..., Any]:
        if obj is None:
            return types.MethodType(self._class_func, owner)
        if self._instance_func is None:
            raise AttributeError(f"{self._class_func.__name__} is not available on instances")
        return types.MethodType(self._instance_func, obj)


class Document(metaclass=DocumentMeta):
    """
    A single record in the content store.

    Fields are passed as keyword arguments and read back as attributes.
    Every document carries ``_id`` (``None`` until the store assigns one) and
    ``_type`` (``default_type`` of the class unless given explicitly).

    Subclasses describe document kinds::

        class Post(Document):
            pass

        post = Post.create(title="Hello")   # -> stored with _type "post"
        Post.where(title="Hello").first()
    """

    _store_client: ClassVar[Optional[StoreClient]] = None

    def __init__(self, /, **attributes: Any) -> None:
        fields: Dict[str, Any] = {"_id": None, "_type": default_type(type(self))}
        fields.update(attributes)
        object.__setattr__(self, "_attributes", fields)

    # -- store binding ------------------------------------------------------

    @classmethod
    def use_client(cls, client: Optional[StoreClient]) -> None:
        """Bind ``client`` to this class and its subclasses; ``None`` removes the binding."""

        if client is None:
            if cls is Document:
                cls._store_client = None
            elif "_store_client" in cls.__dict__:
                delattr(cls, "_store_client")
            return
        cls._store_client = client

    @classmethod
    def store_client(cls) -> StoreClient:
        if cls._store_client is not None:
            return cls._store_client
        return get_store_client()

    @classmethod
    def from_store(cls: Type[D], stored: Mapping[str, Any]) -> D:
        return cls(**dict(stored))

    # -- fields -------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        fields = self.__dict__.get("_attributes")
        if fields is not None and name in fields:
            return fields[name]
        raise AttributeError(f"{type(self).__name__!r} document has no field {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        self._attributes[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._attributes[name]
        except KeyError:
            raise AttributeError(name) from None

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def to_document(self) -> StoreDocument:
        """Payload sent to the store; unset ``_id``/``_type`` are left out."""

        return {
            key: value
            for key, value in self._attributes.items()
            if not (key in ("_id", "_type") and value is None)
        }

    def _merge(self: D, stored: Mapping[str, Any]) -> D:
        self._attributes.update(stored)
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return type(self) is type(other) and self._attributes == other._attributes

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in self._attributes.items())
        return f"{type(self).__name__}({fields})"

    # -- create / replace / delete ------------------------------------------

    @_entity_operation
    def create(cls, /, **attributes: Any):
        """Create a new document; raises ``DocumentConflictError`` if ``_id`` is taken."""

        return cls(**attributes).create()

    @create.instance
    def create(self):
        stored = self.store_client().create(self.to_document())
        logger.debug("Created {type} document {doc_id}", type=stored.get("_type"), doc_id=stored.get("_id"))
        return self._merge(stored)

    @_entity_operation
    def create_or_replace(cls, /, **attributes: Any):
        """Create the document or overwrite the one stored under the same ``_id``."""

        return cls(**attributes).create_or_replace()

    @create_or_replace.instance
    def create_or_replace(self):
        stored = self.store_client().create_or_replace(self.to_document())
        return self._merge(stored)

    @_entity_operation
    def create_if_not_exists(cls, /, **attributes: Any):
        """Create the document unless its ``_id`` exists; an existing document is returned unchanged."""

        return cls(**attributes).create_if_not_exists()

    @create_if_not_exists.instance
    def create_if_not_exists(self):
        stored = self.store_client().create_if_not_exists(self.to_document())
        return self._merge(stored)

    @_entity_operation
    def delete(cls, doc_id: str) -> None:
        """Delete by ``_id``; raises ``DocumentNotFoundError`` when nothing was deleted."""

        cls.store_client().delete(doc_id)
        logger.debug("Deleted document {doc_id}", doc_id=doc_id)

    @delete.instance
    def delete(self) -> None:
        doc_id = self._attributes.get("_id")
        if not doc_id:
            raise ValueError(f"cannot delete {type(self).__name__} document without an _id")
        type(self).delete(doc_id)

    # -- patch / lookup -----------------------------------------------------

    @classmethod
    def patch(
        cls: Type[D],
        doc_id: str,
        set: Optional[Mapping[str, Any]] = None,
        unset: Sequence[str] = (),
    ) -> D:
        """Set and unset fields of a stored document; raises ``DocumentNotFoundError`` if absent."""

        return cls.from_store(cls.store_client().patch(doc_id, set=set, unset=unset))

    @classmethod
    def find(cls: Type[D], doc_id: str) -> Optional[D]:
        stored = cls.store_client().get_document(doc_id)
        if stored is None:
            return None
        return cls.from_store(stored)

    @classmethod
    def where(cls: Type[D], expression: Optional[str] = None, /, **equals: Any) -> QueryResult[D]:
        """
        Query documents of this class.

        Keyword arguments are equality constraints (``author="ada"``), any field
        name included. The positional ``expression`` is an extra store-side
        filter combined with them.
        """

        query = Query(document_type=default_type(cls), filter=expression, equals=equals)
        return QueryResult(cls, query)
