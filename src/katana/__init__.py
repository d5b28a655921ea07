from katana.exceptions import (
    KatanaCyclicDependencyError,
    KatanaError,
    KatanaInvalidProviderError,
    KatanaNilReferenceError,
    KatanaNoProviderError,
    KatanaNotAReferenceError,
    KatanaNotCallableError,
    KatanaProviderAlreadyRegisteredError,
)
from katana.injection import Injected
from katana.injector import Injector
from katana.lifecycle import Lifecycle
from katana.markers import Resolved
from katana.references import Ref
from katana.trace import ResolutionTrace

__all__ = [
    "Injected",
    "Injector",
    "KatanaCyclicDependencyError",
    "KatanaError",
    "KatanaInvalidProviderError",
    "KatanaNilReferenceError",
    "KatanaNoProviderError",
    "KatanaNotAReferenceError",
    "KatanaNotCallableError",
    "KatanaProviderAlreadyRegisteredError",
    "Lifecycle",
    "Ref",
    "Resolved",
    "ResolutionTrace",
]
