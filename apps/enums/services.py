"""
Admin-editable enumerations.

Each EnumDefinition holds a list of ``{id, value, label}`` options. When an
enum's options are replaced and an option keeps its label but gets a new
value, records that store the old value are rewritten to the new one.
Values the code depends on (app status and visibility, user roles) can be
relabelled but not renamed.
"""
import logging
import uuid
from typing import Callable, Dict, List, Optional

from django.db import transaction

from apps.catalog import services as catalog_services
from apps.catalog.models import AppStatus, AppVisibility
from apps.identity import services as identity_services
from apps.identity.models import UserRole
from .dtos import EnumCreate, EnumOptionIn, EnumOut, EnumUsage
from .models import EnumDefinition

logger = logging.getLogger(__name__)


class EnumConflict(Exception):
    """Raised when a key or option value already exists."""
    pass


DEFAULT_ENUMS = {
    'APP_PLATFORM': [
        ('WEB', 'Web'),
        ('MOBILE', 'Mobile'),
        ('DESKTOP', 'Desktop'),
        ('API', 'API'),
        ('IOS', 'iOS'),
        ('ANDROID', 'Android'),
    ],
    'APP_LANGUAGE': [
        (name, name) for name in [
            'JavaScript', 'TypeScript', 'Python', 'Java', 'C#', 'C++', 'Go',
            'Rust', 'Swift', 'Kotlin', 'Dart', 'PHP', 'Ruby', 'React', 'Vue',
            'Angular', 'Node.js', 'Express', 'Django', 'Flask', 'Spring',
            'Laravel', 'Rails',
        ]
    ],
}

# Stored values that follow an enum when its option values change
VALUE_MIGRATIONS: Dict[str, Callable[[str, str], int]] = {
    'APP_STATUS': lambda old, new: catalog_services.rename_field_value('status', old, new),
    'APP_VISIBILITY': lambda old, new: catalog_services.rename_field_value('visibility', old, new),
    'APP_PLATFORM': catalog_services.rename_platform,
    'USER_ROLE': identity_services.rename_role,
}

# Values the code itself relies on; these can be relabelled but never renamed
FIXED_VALUES: Dict[str, List[str]] = {
    'APP_STATUS': AppStatus.values,
    'APP_VISIBILITY': AppVisibility.values,
    'USER_ROLE': UserRole.values,
}

USAGE_COUNTERS: Dict[str, Callable[[], dict]] = {
    'APP_STATUS': lambda: catalog_services.count_field_values('status'),
    'APP_VISIBILITY': lambda: catalog_services.count_field_values('visibility'),
    'APP_PLATFORM': lambda: catalog_services.count_field_values('platforms'),
    'USER_ROLE': identity_services.count_roles,
}


def _with_ids(options) -> List[dict]:
    result = []
    for option in options:
        if isinstance(option, EnumOptionIn):
            option = option.dict()
        result.append({
            'id': option.get('id') or str(uuid.uuid4()),
            'value': option['value'],
            'label': option['label'],
        })
    return result


def _default_options(key: str) -> List[dict]:
    return _with_ids({'value': value, 'label': label} for value, label in DEFAULT_ENUMS[key])


def _check_unique_values(options: List[dict]):
    values = [option['value'] for option in options]
    if len(values) != len(set(values)):
        raise ValueError("Enum values must be unique")


def ensure_defaults() -> int:
    """Create any missing default enum. Returns how many were created."""
    created = 0
    for key in DEFAULT_ENUMS:
        _, was_created = EnumDefinition.objects.get_or_create(
            key=key, defaults={'options': _default_options(key)}
        )
        if was_created:
            logger.info(f"Seeded default enum: {key}")
            created += 1
    return created


def _definitions(key: str):
    """Queryset for ``key``, seeding the defaults first when it is a default enum."""
    if key in DEFAULT_ENUMS:
        ensure_defaults()
    return EnumDefinition.objects.filter(key=key)


def get_option_values(key: str) -> List[str]:
    """Stored values of an enum, its defaults if it was never saved, else []."""
    definition = EnumDefinition.objects.filter(key=key).first()
    if definition:
        return definition.values
    return [value for value, _ in DEFAULT_ENUMS.get(key, [])]


def list_enums() -> List[EnumOut]:
    ensure_defaults()
    return [EnumOut.from_orm(e) for e in EnumDefinition.objects.order_by('key')]


def get_enum(key: str) -> EnumOut | None:
    definition = _definitions(key).first()
    return EnumOut.from_orm(definition) if definition else None


def create_enum(payload: EnumCreate) -> EnumOut:
    """
    Raises:
        EnumConflict: key already exists
        ValueError: duplicate option values
    """
    if _definitions(payload.key).exists():
        raise EnumConflict(f'Enum with key "{payload.key}" already exists')

    options = _with_ids(payload.options)
    _check_unique_values(options)
    definition = EnumDefinition.objects.create(key=payload.key, options=options)
    logger.info(f"Created enum {definition.key} with {len(options)} options")
    return EnumOut.from_orm(definition)


def _value_changes(old_options: List[dict], new_options: List[dict]) -> Dict[str, str]:
    """Old value -> new value for options whose label survived but value changed."""
    changes = {}
    for old in old_options:
        new = next((o for o in new_options if o['label'] == old['label']), None)
        if new and new['value'] != old['value']:
            changes[old['value']] = new['value']
    return changes


def _check_renames(key: str, changes: Dict[str, str]):
    fixed = [old for old in changes if old in FIXED_VALUES.get(key, [])]
    if fixed:
        raise ValueError(f'Built-in {key} values cannot be renamed: {", ".join(fixed)}')


def migrate_values(key: str, changes: Dict[str, str]) -> int:
    """Rewrite stored records for ``changes``. Returns the number of rows touched."""
    if not changes:
        logger.info(f"No value changes detected for enum: {key}")
        return 0

    migrate = VALUE_MIGRATIONS.get(key)
    if migrate is None:
        logger.info(f"No migration needed for enum: {key}")
        return 0

    logger.info(f"Migrating enum {key}: {changes}")
    return sum(migrate(old, new) for old, new in changes.items())


def update_enum(key: str, options: List[EnumOptionIn]) -> EnumOut | None:
    """
    Replace all options of an enum and migrate renamed values.

    Raises:
        ValueError: duplicate option values, or a built-in value renamed
    """
    new_options = _with_ids(options)
    _check_unique_values(new_options)

    with transaction.atomic():
        definition = _definitions(key).select_for_update().first()
        if not definition:
            return None
        changes = _value_changes(definition.options, new_options)
        _check_renames(key, changes)
        definition.options = new_options
        definition.save()
        migrate_values(key, changes)

    return EnumOut.from_orm(definition)


def add_option(key: str, option: EnumOptionIn) -> EnumOut | None:
    """
    Raises:
        EnumConflict: an option with that value already exists
    """
    definition = _definitions(key).first()
    if not definition:
        return None
    if option.value in definition.values:
        raise EnumConflict(f'Option with value "{option.value}" already exists')

    definition.options = definition.options + _with_ids([option])
    definition.save()
    return EnumOut.from_orm(definition)


def update_option(key: str, option_id: str, option: EnumOptionIn) -> EnumOut | None:
    """
    Change one option's value and label. A changed value is migrated on
    stored records.

    Returns None if the enum or option does not exist.

    Raises:
        EnumConflict: another option already uses the new value
        ValueError: a built-in value renamed
    """
    with transaction.atomic():
        definition = _definitions(key).select_for_update().first()
        if not definition:
            return None

        current = next((o for o in definition.options if o['id'] == option_id), None)
        if current is None:
            return None
        if any(o['value'] == option.value and o['id'] != option_id for o in definition.options):
            raise EnumConflict(f'Option with value "{option.value}" already exists')
        changes = {current['value']: option.value} if current['value'] != option.value else {}
        _check_renames(key, changes)

        definition.options = [
            {'id': option_id, 'value': option.value, 'label': option.label} if o['id'] == option_id else o
            for o in definition.options
        ]
        definition.save()
        migrate_values(key, changes)

    return EnumOut.from_orm(definition)


def remove_option(key: str, option_id: str) -> EnumOut | None:
    definition = _definitions(key).first()
    if not definition:
        return None

    remaining = [o for o in definition.options if o['id'] != option_id]
    if len(remaining) == len(definition.options):
        return None
    definition.options = remaining
    definition.save()
    return EnumOut.from_orm(definition)


def delete_enum(key: str) -> bool:
    deleted, _ = _definitions(key).delete()
    if deleted:
        logger.info(f"Deleted enum {key}")
    return bool(deleted)


def reset_enum(key: str) -> EnumOut:
    """
    Restore an enum's default options, creating it if needed.

    Raises:
        KeyError: no defaults exist for ``key``
    """
    if key not in DEFAULT_ENUMS:
        raise KeyError(key)
    definition, _ = EnumDefinition.objects.update_or_create(
        key=key, defaults={'options': _default_options(key)}
    )
    logger.info(f"Reset enum {key} to defaults")
    return EnumOut.from_orm(definition)


def reset_all_enums() -> List[EnumOut]:
    return [reset_enum(key) for key in DEFAULT_ENUMS]


def get_usage(key: str) -> EnumUsage:
    """How many records use each stored value of an enum."""
    counter = USAGE_COUNTERS.get(key)
    if counter is None:
        return EnumUsage(key=key, message='No usage info available for this enum type')
    return EnumUsage(key=key, counts=counter())
