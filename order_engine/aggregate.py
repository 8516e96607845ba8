"""Base aggregate class with @handles and @applies decorators.

Business logic lives as methods on the aggregate class. The @handles
decorator registers a method as the handler for a command type; whatever
events the handler returns are applied to state by the matching @applies
method and recorded. A handler that raises records nothing, so a rejected
command never leaves the aggregate partially mutated.

Example usage:
    class Cart(Aggregate[CartState]):
        domain = "cart"

        def _create_empty_state(self) -> CartState:
            return CartState()

        @applies(LineAdded)
        def apply_line_added(self, state: CartState, event: LineAdded) -> None:
            state.lines[event.menu_item_id] = ...

        @handles(AddItem)
        def add_item(self, cmd: AddItem) -> LineAdded:
            if not cmd.snapshot.is_available:
                raise UnavailableError(...)
            return LineAdded(...)
"""

from __future__ import annotations

import copy
import inspect
from abc import ABC, abstractmethod
from collections.abc import Iterable
from functools import wraps
from typing import Any, Callable, Generic, TypeVar

from .errors import errmsg


def validate_command_handler(
    func: Callable,
    command_type: type,
    cmd_param_index: int,
    decorator_name: str,
) -> str:
    """Validate a command handler's signature.

    Args:
        func: The method being decorated.
        command_type: Expected command type from decorator argument.
        cmd_param_index: Index of the cmd parameter (1 for methods).
        decorator_name: Name of decorator for error messages.

    Returns:
        The name of the cmd parameter.

    Raises:
        TypeError: If validation fails.
    """
    params = list(inspect.signature(func).parameters.values())

    if len(params) < cmd_param_index + 1:
        raise TypeError(f"{func.__name__}: must have cmd parameter")

    cmd_param = params[cmd_param_index]
    hint = cmd_param.annotation
    if hint is inspect.Parameter.empty:
        raise TypeError(f"{func.__name__}: missing type hint for '{cmd_param.name}'")

    # Postponed annotations arrive as strings.
    hint_name = hint if isinstance(hint, str) else getattr(hint, "__name__", repr(hint))
    if hint is not command_type and hint_name != command_type.__name__:
        raise TypeError(
            f"{func.__name__}: @{decorator_name}({command_type.__name__}) "
            f"doesn't match type hint {hint_name}"
        )

    return cmd_param.name


def handles(command_type: type):
    """Decorator for command handler methods on Aggregate subclasses.

    The decorated method returns a single event, a tuple of events, or None
    when the command is accepted but changes nothing.

    Raises:
        TypeError: If the type hint is missing or doesn't match command_type.
    """

    def decorator(method: Callable) -> Callable:
        validate_command_handler(method, command_type, cmd_param_index=1, decorator_name="handles")

        @wraps(method)
        def wrapper(self, cmd):
            if not isinstance(cmd, command_type):
                raise TypeError(f"{method.__name__} expects {command_type.__name__}, got {type(cmd).__name__}")
            result = method(self, cmd)
            if result is None:
                events = ()
            elif isinstance(result, tuple):
                events = result
            else:
                events = (result,)
            self._apply_and_record(events)
            return result

        wrapper._is_handler = True
        wrapper._command_type = command_type
        return wrapper

    return decorator


def applies(event_type: type):
    """Decorator for event applier methods on Aggregate subclasses.

    The decorated method receives (state, event) and mutates state in place.
    Appliers never validate; validation belongs to the command handler.
    """

    def decorator(method: Callable) -> Callable:
        method._is_applier = True
        method._event_type = event_type
        return method

    return decorator


StateT = TypeVar("StateT")


class Aggregate(Generic[StateT], ABC):
    """Base class for event-recording aggregates.

    Provides:
    - Command dispatch via @handles decorated methods
    - Event application via @applies decorated methods
    - Rebuild from an event history
    - Speculative execution that validates without mutating

    Subclasses must:
    - Set `domain` class attribute
    - Implement `_create_empty_state() -> StateT`
    """

    domain: str
    _dispatch_table: dict[type, str] = {}
    _applier_table: dict[type, str] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        # Skip validation for abstract intermediate classes
        if inspect.isabstract(cls):
            return

        if not getattr(cls, "domain", None):
            raise TypeError(f"{cls.__name__} must define 'domain' class attribute")

        cls._dispatch_table = cls._build_table("_is_handler", "_command_type")
        cls._applier_table = cls._build_table("_is_applier", "_event_type")

    @classmethod
    def _build_table(cls, marker: str, type_attr: str) -> dict[type, str]:
        """Scan for decorated methods and map their message type to method name."""
        table = {}
        for name in dir(cls):
            attr = getattr(cls, name, None)
            if callable(attr) and getattr(attr, marker, False):
                message_type = getattr(attr, type_attr)
                if message_type in table:
                    raise TypeError(f"{cls.__name__}: duplicate registration for {message_type.__name__}")
                table[message_type] = name
        return table

    def __init__(self, history: Iterable[Any] | None = None):
        """Initialize aggregate, optionally rebuilding state from prior events."""
        self._state: StateT = self._create_empty_state()
        self._history: list[Any] = []
        self._new_events: list[Any] = []
        for event in history or ():
            self._apply_event(self._state, event)
            self._history.append(event)

    def dispatch(self, cmd: Any) -> Any:
        """Dispatch a command to its @handles method.

        Raises:
            ValueError: If no handler matches the command type.
        """
        method_name = self._dispatch_table.get(type(cmd))
        if method_name is None:
            raise ValueError(f"{errmsg.UNKNOWN_COMMAND}: {type(cmd).__name__}")
        return getattr(self, method_name)(cmd)

    def speculate(self, cmd: Any) -> list[Any]:
        """Return the events cmd would produce, leaving this aggregate untouched.

        Raises whatever the handler raises.
        """
        clone = copy.copy(self)
        clone._state = copy.deepcopy(self._state)
        clone._history = list(self._history)
        clone._new_events = []
        clone.dispatch(cmd)
        return list(clone._new_events)

    @property
    def state(self) -> StateT:
        return self._state

    def events(self) -> list[Any]:
        """All events: rebuilt history followed by events recorded since."""
        return self._history + self._new_events

    def pending_events(self) -> list[Any]:
        return list(self._new_events)

    def take_events(self) -> list[Any]:
        """Drain events recorded since the last call, moving them to history."""
        taken = self._new_events
        self._history.extend(taken)
        self._new_events = []
        return taken

    def _apply_event(self, state: StateT, event: Any) -> None:
        method_name = self._applier_table.get(type(event))
        if method_name is None:
            # Unknown event types are ignored on rebuild.
            return
        getattr(self, method_name)(state, event)

    def _apply_and_record(self, events: tuple) -> None:
        """Apply events to a working copy, then publish state and record them."""
        if not events:
            return
        working = copy.deepcopy(self._state)
        for event in events:
            self._apply_event(working, event)
        self._state = working
        self._new_events.extend(events)

    @abstractmethod
    def _create_empty_state(self) -> StateT:
        """Create an empty state instance. Must be implemented by subclasses."""
        ...
