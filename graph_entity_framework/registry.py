import logging
import threading
import typing

import attr

from graph_entity_framework.annotations import AnnotationReader
from graph_entity_framework.meta import EntityMeta, load_class, unwrap_proxy_class

logger = logging.getLogger(__name__)


@attr.s(auto_attribs=True)
class MetaRepository:
    reader: AnnotationReader = attr.Factory(AnnotationReader)
    entities_metas: typing.Dict[typing.Type, EntityMeta] = attr.Factory(dict)
    _lock: threading.Lock = attr.ib(factory=threading.Lock, init=False, repr=False)

    def get(self, class_name: typing.Union[str, typing.Type]) -> EntityMeta:
        entity_cls = load_class(class_name) if isinstance(class_name, str) else class_name
        if isinstance(entity_cls, type):
            entity_cls = unwrap_proxy_class(entity_cls)

        meta = self.entities_metas.get(entity_cls)
        if meta is not None:
            return meta

        with self._lock:
            meta = self.entities_metas.get(entity_cls)
            if meta is None:
                meta = EntityMeta.from_class(self.reader, entity_cls)
                self.entities_metas[entity_cls] = meta
                logger.debug("Built metadata for %s", meta.class_name)
        return meta
