import typing

import attr

ENTITY = "Entity"
AUTO = "Auto"
PROPERTY = "Property"
INDEX = "Index"
MANY_TO_MANY = "ManyToMany"
MANY_TO_ONE = "ManyToOne"

CLASS_ANNOTATIONS = "__graph_annotations__"
MEMBER_ANNOTATIONS = "graph_entity_framework.annotations"


class AnnotationReader:
    def get_class_annotation(self, cls: typing.Type, name: str) -> typing.Optional[dict]:
        # only what the class itself declares, never what it inherits
        return vars(cls).get(CLASS_ANNOTATIONS, {}).get(name)

    def get_members(self, cls: typing.Type) -> typing.Tuple[attr.Attribute, ...]:
        if not attr.has(cls):
            return ()
        return tuple(attr.fields(cls))

    def get_member_annotations(self, member: attr.Attribute) -> typing.Dict[str, dict]:
        return dict(member.metadata.get(MEMBER_ANNOTATIONS, {}))

    def get_member_annotation(self, member: attr.Attribute, name: str) -> typing.Optional[dict]:
        return self.get_member_annotations(member).get(name)
