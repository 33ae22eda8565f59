#!/usr/bin/env python3
"""
Validate facade-palettes.json
"""
import json
import re
import sys
from pathlib import Path

# Expected structure
EXPECTED_PRESETS = ['night_warm']
EXPECTED_COMPONENTS = ['facade', 'window_off']
HEX_PATTERN = re.compile(r'^#([0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$')


def _check_color(entry, where, invalid):
    if not isinstance(entry, dict):
        invalid.setdefault(where, []).append('not a dict')
    elif 'hex' not in entry:
        invalid.setdefault(where, []).append('missing hex')
    elif 'name' not in entry:
        invalid.setdefault(where, []).append('missing name')
    elif not isinstance(entry['hex'], str) or not HEX_PATTERN.match(entry['hex']):
        invalid.setdefault(where, []).append('invalid hex format')


def validate_facade_palettes():
    """Validate facade-palettes.json"""
    print("Validating facade-palettes.json...")
    config_path = Path(__file__).parent.parent / 'config' / 'facade-palettes.json'

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        print(f"✗ Invalid JSON: {e}")
        return False
    except FileNotFoundError:
        print(f"✗ File not found: {config_path}")
        return False

    presets = data.get('presets')
    if not isinstance(presets, dict) or not presets:
        print("✗ Missing or empty top-level 'presets' key")
        return False

    missing_presets = [p for p in EXPECTED_PRESETS if p not in presets]
    if missing_presets:
        print(f"✗ Missing presets: {missing_presets}")
        return False
    print(f"✓ {len(presets)} presets present")

    missing_components = {}
    invalid_components = {}

    for name, preset in presets.items():
        for comp in EXPECTED_COMPONENTS:
            if comp not in preset:
                missing_components.setdefault(name, []).append(comp)
            else:
                _check_color(preset[comp], f'{name}.{comp}', invalid_components)

        windows = preset.get('windows')
        if not isinstance(windows, list) or not windows:
            missing_components.setdefault(name, []).append('windows')
        else:
            for i, entry in enumerate(windows):
                _check_color(entry, f'{name}.windows[{i}]', invalid_components)

        intensity = preset.get('emission_intensity', 2.0)
        if not isinstance(intensity, (int, float)) or intensity < 0:
            invalid_components.setdefault(f'{name}.emission_intensity', []).append('must be a non-negative number')

    if missing_components:
        print(f"✗ Missing components: {missing_components}")
        return False

    if invalid_components:
        print(f"✗ Invalid components: {invalid_components}")
        return False

    print("✓ All palette colors present and valid")
    return True


if __name__ == '__main__':
    if validate_facade_palettes():
        print("\n✓ All validations passed!")
        sys.exit(0)
    else:
        print("\n✗ Some validations failed")
        sys.exit(1)
