from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any, TypeVar, Union, get_args, get_origin

from typing_extensions import Self

T = TypeVar("T")

_ANNOTATED_MIN_ARGS = 2


class ResolvedMarker:
    """Marker stored in ``Annotated`` metadata for parameters resolved by the injector."""

    def __repr__(self) -> str:
        return "ResolvedMarker()"


def _build_annotated(params: tuple[object, ...]) -> Any:
    """Return Annotated[...] with a pre-built params tuple (Py 3.10+ compatible)."""
    try:
        return Annotated.__class_getitem__(params)  # type: ignore[attr-defined]
    except AttributeError:
        return Annotated.__getitem__(params)  # type: ignore[attr-defined]


if TYPE_CHECKING:
    Resolved = Union[T, T]  # noqa: UP007,PYI016
else:

    class Resolved:
        """Type wrapper marking a parameter to be resolved from the injector.

        Usage:
            def test_accounts(service: Resolved[AccountService]) -> None:
                ...

        At runtime, Resolved[T] becomes Annotated[T, ResolvedMarker()].
        """

        def __new__(cls, *_args: object, **_kwargs: object) -> Self:
            """Prevent instantiation; use Resolved[T] instead."""
            msg = "Resolved is a type annotation, use Resolved[T] instead of instantiating it."
            raise TypeError(msg)

        def __class_getitem__(cls, item: T) -> Annotated[T, ResolvedMarker]:
            if get_origin(item) is Annotated:
                args = get_args(item)
                return _build_annotated((args[0], *args[1:], ResolvedMarker()))
            return _build_annotated((item, ResolvedMarker()))


def resolved_key(annotation: Any) -> Any | None:
    """Return the dependency key of a ``Resolved[...]`` annotation, otherwise ``None``.

    Metadata other than the marker is preserved, so
    ``Resolved[Annotated[Db, "ro"]]`` yields ``Annotated[Db, "ro"]``.
    """
    if get_origin(annotation) is not Annotated:
        return None
    args = get_args(annotation)
    if len(args) < _ANNOTATED_MIN_ARGS:
        return None  # pragma: no cover - Annotated requires at least 2 args

    parameter_type, metadata = args[0], args[1:]
    if not any(isinstance(item, ResolvedMarker) for item in metadata):
        return None

    remaining = tuple(item for item in metadata if not isinstance(item, ResolvedMarker))
    if not remaining:
        return parameter_type
    return _build_annotated((parameter_type, *remaining))
