"""Settings library for the ledger configuration.

Provides:
    - Schema validation and enforcement for ledger.json structure.
    - Loading, saving, reverting, and managing application settings.
    - The category catalog and view defaults read by the coordinator.
"""

import json
import logging
import pathlib
import shutil
from typing import Dict, Any, Optional, List

from PySide6 import QtCore

from ..data.model import (
    AnalyticsPeriod,
    CategoryCatalog,
    DateRangeToken,
    FALLBACK_CATEGORY,
    SortKey,
)
from ..status import status

app_name: str = 'SpendTracker'

METADATA_KEYS: List[str] = [
    'name',
    'locale',
    'date_range',
    'sort_key',
    'analytics_period',
    'storage_key',
]

LEDGER_SCHEMA: Dict[str, Any] = {
    'metadata': {
        'type': dict,
        'required': True,
        'required_keys': METADATA_KEYS,
        'item_schema': {
            'name': {'type': str, 'required': True},
            'locale': {'type': str, 'required': True},
            'date_range': {
                'type': str,
                'required': True,
                'allowed_values': [t.value for t in DateRangeToken]
            },
            'sort_key': {
                'type': str,
                'required': True,
                'allowed_values': [k.value for k in SortKey]
            },
            'analytics_period': {
                'type': str,
                'required': True,
                'allowed_values': [p.value for p in AnalyticsPeriod]
            },
            'storage_key': {'type': str, 'required': True},
        }
    },
    'categories': {
        'type': dict,
        'required': True,
        'required_keys': [FALLBACK_CATEGORY],
        'item_schema': {
            'description': {'type': str, 'required': True},
            'excluded': {'type': bool, 'required': True}
        }
    }
}


def _validate_metadata(metadata_dict: Dict[str, Any], specs: Dict[str, Any]) -> None:
    """Validate the 'metadata' section of the ledger configuration.

    Args:
        metadata_dict: Mapping of metadata keys to values.
        specs: Schema dict containing 'required_keys' and 'item_schema'.

    Raises:
        TypeError: If metadata_dict is not a dict or a value has the wrong type.
        ValueError: If a required key is missing or a value is not among its allowed values.
    """
    logging.debug('Validating "metadata" section.')
    if not isinstance(metadata_dict, dict):
        msg: str = '"metadata" must be a dict.'
        logging.error(msg)
        raise TypeError(msg)

    missing = [k for k in specs['required_keys'] if k not in metadata_dict]
    if missing:
        msg = f'Missing metadata keys: {missing}'
        logging.error(msg)
        raise ValueError(msg)

    for key, key_specs in specs['item_schema'].items():
        value = metadata_dict[key]
        if not isinstance(value, key_specs['type']):
            msg = f'Metadata key "{key}" must be {key_specs["type"]}, got {type(value)}.'
            logging.error(msg)
            raise TypeError(msg)
        allowed = key_specs.get('allowed_values')
        if allowed and value not in allowed:
            msg = f'Metadata key "{key}" must be one of {allowed}, got "{value}".'
            logging.error(msg)
            raise ValueError(msg)


def _validate_categories(categories_dict: Dict[str, Any], specs: Dict[str, Any]) -> None:
    """Validate the 'categories' section of the ledger configuration.

    Ensures categories_dict maps category names to dicts of required fields matching the item
    schema, and that the fallback category is present.

    Args:
        categories_dict: Mapping of category names to their configuration dicts.
        specs: Schema dict containing 'required_keys' and 'item_schema'.

    Raises:
        TypeError: If categories_dict is not a dict or category entries are not dicts or wrong types.
        ValueError: If a required category or field is missing.
    """
    logging.debug('Validating "categories" section.')
    if not isinstance(categories_dict, dict):
        msg: str = '"categories" must be a dict.'
        logging.error(msg)
        raise TypeError(msg)

    for required in specs['required_keys']:
        if required not in categories_dict:
            msg = f'Category "{required}" is required.'
            logging.error(msg)
            raise ValueError(msg)

    item_schema = specs['item_schema']
    for cat_name, cat_info in categories_dict.items():
        if not cat_name.strip():
            msg = 'Category names must not be empty.'
            logging.error(msg)
            raise ValueError(msg)
        if not isinstance(cat_info, dict):
            msg = f'Category "{cat_name}" must be a dict.'
            logging.error(msg)
            raise TypeError(msg)
        for field, field_specs in item_schema.items():
            if field_specs['required'] and field not in cat_info:
                msg = f'Category "{cat_name}" missing "{field}".'
                logging.error(msg)
                raise ValueError(msg)
            if field not in cat_info:
                continue
            if not isinstance(cat_info[field], field_specs['type']):
                msg = (
                    f'Category "{cat_name}" field "{field}" must be {field_specs["type"]}, '
                    f'got {type(cat_info[field])}.'
                )
                logging.error(msg)
                raise TypeError(msg)


class ConfigPaths:
    """Manage application file paths and ensure the default template and directories exist."""

    def __init__(self) -> None:
        QtCore.QCoreApplication.setApplicationName(app_name)
        QtCore.QCoreApplication.setOrganizationName('')
        logging.debug(f'Setting application name: {app_name}')

        p = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.StandardLocation.AppDataLocation)
        app_data_dir = pathlib.Path(p)
        logging.debug(f'Using app data directory: {app_data_dir}')

        self.template_dir: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config'
        self.ledger_template: pathlib.Path = self.template_dir / 'ledger.json.template'

        self.config_dir: pathlib.Path = app_data_dir / 'config'
        self.db_dir: pathlib.Path = app_data_dir / 'db'

        self.ledger_path: pathlib.Path = self.config_dir / 'ledger.json'
        self.db_path: pathlib.Path = self.db_dir / 'transactions.json'

        self._verify_and_prepare()

    def _verify_and_prepare(self) -> None:
        """Verify the template exists, create directories and copy the default ledger.

        Raises:
            FileNotFoundError: If the template directory or file is missing.
        """
        logging.debug(f'Verifying required directories and templates in {self.template_dir}')
        if not self.template_dir.exists():
            msg: str = f'Missing template directory: {self.template_dir}'
            logging.error(msg)
            raise FileNotFoundError(msg)
        if not self.ledger_template.exists():
            msg = f'Missing ledger template: {self.ledger_template}'
            logging.error(msg)
            raise FileNotFoundError(msg)

        if not self.config_dir.exists():
            logging.debug(f'Creating config directory: {self.config_dir}')
            self.config_dir.mkdir(parents=True, exist_ok=True)

        if not self.db_dir.exists():
            logging.debug(f'Creating db directory: {self.db_dir}')
            self.db_dir.mkdir(parents=True, exist_ok=True)

        if not self.ledger_path.exists():
            logging.debug(f'Copying default ledger from template to {self.ledger_path}')
            shutil.copy(self.ledger_template, self.ledger_path)

    def revert_ledger_to_template(self) -> None:
        """Restore ledger.json from the default template file.

        Raises:
            FileNotFoundError: If the ledger template file is missing.
        """
        logging.debug(f'Reverting ledger to template: {self.ledger_template}')
        if not self.ledger_template.exists():
            msg: str = f'Ledger template not found: {self.ledger_template}'
            logging.error(msg)
            raise FileNotFoundError(msg)
        shutil.copy(self.ledger_template, self.ledger_path)


class SettingsAPI(ConfigPaths):
    """
    Provides an interface to get/set/revert/save ledger.json sections.
    """

    def __init__(self, ledger_path: Optional[str] = None) -> None:
        """Initialize SettingsAPI and load the ledger.

        Args:
            ledger_path: Optional path to a custom ledger.json file.
        """
        super().__init__()

        self.ledger_path: pathlib.Path = pathlib.Path(ledger_path) if ledger_path else self.ledger_path

        self._signals_blocked: bool = False

        self.ledger_data: Dict[str, Any] = {}
        for k in LEDGER_SCHEMA.keys():
            self.ledger_data[k] = {}

        self.init_data()

    def __getitem__(self, key: str) -> Any:
        """Retrieve a metadata value using dictionary-style access.

        Raises:
            KeyError: If key is not in METADATA_KEYS.
            RuntimeError: If metadata section is missing from ledger_data.
        """
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')

        if 'metadata' not in self.ledger_data:
            raise RuntimeError('Malformed ledger data, missing "metadata" section.')

        _type = LEDGER_SCHEMA['metadata']['item_schema'][key]['type']
        v = self.ledger_data['metadata'].get(key)

        if not isinstance(v, _type):
            logging.error(f'Metadata key "{key}" is not of type {_type}, got {type(v)}.')
            return None

        return v

    def __setitem__(self, key: str, value: Any) -> None:
        """Assign a metadata value using dictionary-style access and persist it.

        Raises:
            KeyError: If key is not in METADATA_KEYS.
            ValueError: If the value is not among the key's allowed values.
            RuntimeError: If metadata section is missing.
        """
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')

        if 'metadata' not in self.ledger_data:
            raise RuntimeError('Malformed ledger data, missing "metadata" section.')

        key_specs = LEDGER_SCHEMA['metadata']['item_schema'][key]
        _type = key_specs['type']
        if not isinstance(value, _type):
            logging.warning(f'Metadata key "{key}" is not of type {_type}, got {type(value)}.')
            value = _type(value)

        allowed = key_specs.get('allowed_values')
        if allowed and value not in allowed:
            msg = f'Metadata key "{key}" must be one of {allowed}, got "{value}".'
            logging.error(msg)
            raise ValueError(msg)

        self.ledger_data['metadata'][key] = value
        self.save_section('metadata')

        if self._signals_blocked:
            return

        from ..core.signals import signals
        signals.metadataChanged.emit(key, value)

    def block_signals(self, v: bool) -> None:
        """Enable or disable emission of configuration change signals."""
        self._signals_blocked = v

    def init_data(self) -> None:
        """Reload ledger data and emit change signals."""
        self.load_ledger()

        if self._signals_blocked:
            return

        from ..core.signals import signals
        for section in LEDGER_SCHEMA.keys():
            if section == 'metadata':
                continue
            signals.configSectionChanged.emit(section)

        for k, v in self.ledger_data.get('metadata', {}).items():
            signals.metadataChanged.emit(k, v)

    def load_ledger(self) -> Dict[str, Any]:
        """Load ledger.json from disk and validate against schema.

        Returns:
            The loaded ledger data dictionary.

        Raises:
            status.LedgerConfigNotFoundException: If ledger.json file is missing.
            status.LedgerConfigInvalidException: If JSON parsing or validation fails.
        """
        logging.debug(f'Loading ledger from "{self.ledger_path}"')
        if not self.ledger_path.exists():
            raise status.LedgerConfigNotFoundException(str(self.ledger_path))

        try:
            with self.ledger_path.open('r', encoding='utf-8') as f:
                data: Dict[str, Any] = json.load(f)
            self.validate_ledger_data(data)
        except (ValueError, TypeError, RuntimeError) as ex:
            raise status.LedgerConfigInvalidException(str(ex)) from ex

        self.ledger_data = data
        return self.ledger_data

    def validate_ledger_data(self, data: Dict[str, Any] = None) -> None:
        """Validate ledger data against the defined LEDGER_SCHEMA.

        Args:
            data (dict, optional): Ledger data to validate. Defaults to self.ledger_data.

        Raises:
            RuntimeError: If data is empty.
            ValueError: If a required section is missing or a value is not allowed.
            TypeError: If a section or value has the wrong type.
        """
        if data is None:
            data = self.ledger_data
        if not data:
            raise RuntimeError('Ledger data is empty.')

        logging.debug('Validating ledger data against schema.')
        for field, specs in LEDGER_SCHEMA.items():
            if specs.get('required') and field not in data:
                raise ValueError(f'Missing required field: {field}')

            if field not in data:
                continue

            if not isinstance(data[field], specs['type']):
                raise TypeError(f'Field "{field}" must be {specs["type"]}, got {type(data[field])}.')

            if field == 'metadata':
                _validate_metadata(data[field], specs)
            elif field == 'categories':
                _validate_categories(data[field], specs)

        logging.debug('Ledger data is valid.')

    def get_section(self, section_name: str) -> Dict[str, Any]:
        """Retrieve a copy of a ledger section.

        Raises:
            KeyError: If section_name is not in ledger_data.
        """
        return self.ledger_data[section_name].copy()

    def set_section(self, section_name: str, new_data: Dict[str, Any]) -> None:
        """Replace and persist a ledger section.

        The previous section data is restored when the new data fails validation.

        Raises:
            ValueError: If section_name is unrecognized or the new data is invalid.
            TypeError: If the new data has invalid types.
        """
        if section_name not in self.ledger_data:
            msg: str = f'Unknown section_name for set: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        current_section_data: Dict[str, Any] = self.ledger_data.get(section_name).copy()

        self.ledger_data[section_name] = new_data
        try:
            self.validate_ledger_data()
        except (ValueError, TypeError) as e:
            logging.error(f'Validation error on set_section("{section_name}"): {e}')
            self.ledger_data[section_name] = current_section_data
            raise

        self.save_section(section_name)

        if self._signals_blocked:
            return

        from ..core.signals import signals
        signals.configSectionChanged.emit(section_name)

    def revert_section(self, section_name: str) -> None:
        """Revert a ledger section to its template default and save.

        Raises:
            ValueError: If section_name is invalid or not present in the template.
        """
        if section_name not in self.ledger_data:
            msg: str = f'Unknown section_name for revert: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        with self.ledger_template.open('r', encoding='utf-8') as f:
            template_data: Dict[str, Any] = json.load(f)

        if section_name not in template_data:
            msg = f'No template-based revert logic for section "{section_name}".'
            logging.error(msg)
            raise ValueError(msg)

        self.ledger_data[section_name] = template_data[section_name]
        self.save_section(section_name)

        if self._signals_blocked:
            return

        from ..core.signals import signals
        signals.configSectionChanged.emit(section_name)

    def save_section(self, section_name: str) -> None:
        """Persist a single ledger section to ledger.json.

        Raises:
            ValueError: If section_name is not recognized.
        """
        if section_name not in self.ledger_data:
            msg: str = f'Unknown section_name for save: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        with self.ledger_path.open('r', encoding='utf-8') as f:
            original_data: Dict[str, Any] = json.load(f)

        new_data: Dict[str, Any] = original_data.copy()
        new_data[section_name] = self.ledger_data[section_name]

        with self.ledger_path.open('w', encoding='utf-8') as f:
            json.dump(new_data, f, indent=4, ensure_ascii=False)

    def category_catalog(self) -> CategoryCatalog:
        """Build the category catalog from the non-excluded categories, in configured order.

        Raises:
            status.CategoriesInvalidException: If the configured names are invalid.
        """
        config = self.get_section('categories')
        names = [k for k, v in config.items() if not v.get('excluded', False)]
        return CategoryCatalog(names)


settings: SettingsAPI = SettingsAPI()
