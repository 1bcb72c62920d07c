"""
AI Toolbox: Record Codec
Single decode step for stored documents.

Older builds wrote camelCase keys (providerId, isApplied, sortIndex, ...) and called
profiles "providers". Every field is looked up under its current key first, then
under each legacy key, and normalised to one type once. Writes always use the
current keys and stamp schema_version; records at the current version are read
through their current keys only.
"""
import json

from ai_toolbox.core.profiles.models import Profile, CommonConfig, SkillSettings, AppSettings

SCHEMA_VERSION = 2


# attribute -> (current key, legacy keys...)
PROFILE_FIELDS = {
    'id':                ('profile_id', 'provider_id', 'providerId', 'config_id', 'configId'),
    'name':              ('name',),
    'category':          ('category',),
    'settings_config':   ('settings_config', 'settingsConfig'),
    'source_profile_id': ('source_profile_id', 'source_provider_id', 'sourceProviderId'),
    'website_url':       ('website_url', 'websiteUrl'),
    'notes':             ('notes',),
    'icon':              ('icon',),
    'icon_color':        ('icon_color', 'iconColor'),
    'sort_index':        ('sort_index', 'sortIndex'),
    'is_applied':        ('is_applied', 'isApplied'),
    'created_at':        ('created_at', 'createdAt'),
    'updated_at':        ('updated_at', 'updatedAt'),
}

COMMON_FIELDS = {
    'config':     ('config',),
    'updated_at': ('updated_at', 'updatedAt'),
}

SKILL_FIELDS = {
    'central_repo_path': ('central_repo_path', 'centralRepoPath'),
}

APP_FIELDS = {
    'minimize_to_tray': ('minimize_to_tray', 'minimizeToTray'),
}


def _is_legacy(record: dict) -> bool:
    version = record.get('schema_version')
    if isinstance(version, bool) or not isinstance(version, int):
        return True
    return version < SCHEMA_VERSION


def _probe(record: dict, keys: tuple):
    if not _is_legacy(record):
        keys = keys[:1]
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _as_str(value, default=""):
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _as_opt_str(value):
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _as_bool(value, default=False):
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return default


def _as_opt_int(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_settings_text(value):
    # Some exports stored settings as a nested object instead of JSON text
    if value is None:
        return "{}"
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def decode_profile(record: dict, record_id: str = "") -> Profile:
    values = {attr: _probe(record, keys) for attr, keys in PROFILE_FIELDS.items()}
    return Profile(
        id=_as_str(values['id'], record_id),
        name=_as_str(values['name'], "Unnamed Profile"),
        category=_as_str(values['category']),
        settings_config=_as_settings_text(values['settings_config']),
        source_profile_id=_as_opt_str(values['source_profile_id']),
        website_url=_as_opt_str(values['website_url']),
        notes=_as_opt_str(values['notes']),
        icon=_as_opt_str(values['icon']),
        icon_color=_as_opt_str(values['icon_color']),
        sort_index=_as_opt_int(values['sort_index']),
        is_applied=_as_bool(values['is_applied']),
        created_at=_as_str(values['created_at']),
        updated_at=_as_str(values['updated_at']),
    )


def encode_profile(profile: Profile) -> dict:
    record = {PROFILE_FIELDS[attr][0]: getattr(profile, attr) for attr in PROFILE_FIELDS}
    record['schema_version'] = SCHEMA_VERSION
    return record


def decode_common_config(record: dict) -> CommonConfig:
    return CommonConfig(
        config=_as_str(_probe(record, COMMON_FIELDS['config'])),
        updated_at=_as_opt_str(_probe(record, COMMON_FIELDS['updated_at'])),
    )


def encode_common_config(common: CommonConfig) -> dict:
    return {
        'config': common.config,
        'updated_at': common.updated_at,
        'schema_version': SCHEMA_VERSION,
    }


def decode_skill_settings(record: dict) -> SkillSettings:
    return SkillSettings(central_repo_path=_as_str(_probe(record, SKILL_FIELDS['central_repo_path'])))


def encode_skill_settings(settings: SkillSettings) -> dict:
    return {'central_repo_path': settings.central_repo_path, 'schema_version': SCHEMA_VERSION}


def decode_app_settings(record: dict) -> AppSettings:
    value = _probe(record, APP_FIELDS['minimize_to_tray'])
    return AppSettings(minimize_to_tray=_as_bool(value, True) if value is not None else True)


def encode_app_settings(settings: AppSettings) -> dict:
    return {'minimize_to_tray': settings.minimize_to_tray, 'schema_version': SCHEMA_VERSION}
