import importlib
import logging
import os
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, List, Mapping, Optional

logger = logging.getLogger('bot')

# Discord application command option types
STRING = 3
INTEGER = 4
BOOLEAN = 5
USER = 6

CHAT_INPUT = 1
MAX_NAME_LENGTH = 32
MAX_DESCRIPTION_LENGTH = 100


@dataclass(frozen=True)
class CommandOption:
    name: str
    description: str
    type: int = STRING
    required: bool = False

    def to_dict(self):
        return {
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "required": self.required,
        }


@dataclass(frozen=True)
class CommandSchema:
    """Slash command definition, serialised as Discord expects it"""
    name: str
    description: str
    options: List[CommandOption] = field(default_factory=list)

    def to_dict(self):
        return {
            "name": self.name,
            "description": self.description,
            "type": CHAT_INPUT,
            "options": [option.to_dict() for option in self.options],
        }

    def problems(self):
        """Return the ways this schema breaks Discord's limits"""
        issues = []
        if not self.name or len(self.name) > MAX_NAME_LENGTH:
            issues.append(f"invalid name {self.name!r}")
        if not self.description or len(self.description) > MAX_DESCRIPTION_LENGTH:
            issues.append(f"invalid description for {self.name!r}")
        return issues


@dataclass(frozen=True)
class CommandEntry:
    name: str
    schema: CommandSchema
    execute: Callable[..., Awaitable[Any]]
    prefix_execute: Optional[Callable[..., Awaitable[Any]]] = None


@dataclass(frozen=True)
class CommandRegistry:
    """Commands and component handlers, fixed once startup is done"""
    commands: Mapping[str, CommandEntry]
    prefix_commands: Mapping[str, CommandEntry]
    buttons: Mapping[str, Callable[..., Awaitable[Any]]] = field(default_factory=dict)
    selects: Mapping[str, Callable[..., Awaitable[Any]]] = field(default_factory=dict)

    @classmethod
    def from_modules(cls, modules):
        """Index command modules by name.

        A module needs ``schema`` and ``execute`` to be registered. It may
        also provide ``prefix_execute`` and ``buttons``/``selects`` maps of
        custom id to handler.
        """
        commands = {}
        prefix_commands = {}
        buttons = {}
        selects = {}

        for module in modules:
            schema = getattr(module, "schema", None)
            execute = getattr(module, "execute", None)
            if schema is None or execute is None:
                continue

            for issue in schema.problems():
                logger.warning(f"Command schema problem: {issue}")

            entry = CommandEntry(
                name=schema.name,
                schema=schema,
                execute=execute,
                prefix_execute=getattr(module, "prefix_execute", None),
            )
            commands[entry.name] = entry
            prefix_commands[entry.name.lower()] = entry
            buttons.update(getattr(module, "buttons", {}))
            selects.update(getattr(module, "selects", {}))

        return cls(
            commands=MappingProxyType(commands),
            prefix_commands=MappingProxyType(prefix_commands),
            buttons=MappingProxyType(buttons),
            selects=MappingProxyType(selects),
        )

    def schemas(self):
        return [entry.schema.to_dict() for entry in self.commands.values()]


def load_commands(package="fmbot.commands"):
    """Import every command module in a package and build the registry"""
    root = importlib.import_module(package)
    folder = os.path.dirname(root.__file__)

    modules = []
    failed = defaultdict(list)
    for file in sorted(os.listdir(folder)):
        if not file.endswith(".py") or file.startswith("_"):
            continue
        name = f"{package}.{file[:-3]}"
        try:
            modules.append(importlib.import_module(name))
        except Exception as e:
            logger.error(f"Failed to load command module {name}: {e}")
            failed[type(e).__name__].append(name)

    registry = CommandRegistry.from_modules(modules)
    logger.info(f"Command loading complete. Loaded: {len(registry.commands)}, Failed: {sum(len(v) for v in failed.values())}")
    for error, names in failed.items():
        logger.info(f"  - {error}: {', '.join(names)}")
    return registry


async def sync_commands(http, application_id, schemas, guild_id=None):
    """Upload slash command schemas in one bulk call.

    Guild scope first deletes every command already registered in the
    guild so stale entries don't linger. Returns True on success.
    """
    try:
        logger.info(f"Registering {len(schemas)} slash commands...")
        if guild_id:
            existing = await http.get_guild_commands(application_id, guild_id)
            for command in existing:
                await http.delete_guild_command(application_id, guild_id, command["id"])
            await http.bulk_upsert_guild_commands(application_id, guild_id, schemas)
            logger.info(f"Registered {len(schemas)} guild commands")
        else:
            await http.bulk_upsert_global_commands(application_id, schemas)
            logger.info(f"Registered {len(schemas)} global commands")
        return True
    except Exception as e:
        logger.error(f"Failed to register commands: {e}")
        return False
