from sqlalchemy.types import Enum

from app.election.model.enums import PostNameEnum


def post_name_field():
    """
    Column type for the post name, stored by its display
    value ("Vice President") instead of the member name.
    """
    return Enum(
        PostNameEnum,
        name="post_name",
        values_callable=lambda enum_class: [member.value for member in enum_class],
        validate_strings=True,
    )
