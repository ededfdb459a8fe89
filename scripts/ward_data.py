#!/usr/bin/env python3
"""
ward_data.py — Shared loaders and parsing helpers for the ward results ETL

Reads the three per-cycle result files (2015.json, 2020.json, 2025.json),
optionally downloading them first, and provides the small primitives every
join in ward_results_etl.py depends on.

Usage:
    from ward_data import load_cycle_datasets, parse_int_safe, normalise_ward_name
"""

import copy
import json
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor

import requests

log = logging.getLogger('WardData')

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CYCLES = ('2015', '2020', '2025')

# Filename and empty default per cycle. 2015/2020 are lists of ward records,
# 2025 is keyed by ward id ("001", "002", ...).
CYCLE_FILES = {
    '2015': ('2015.json', []),
    '2020': ('2020.json', []),
    '2025': ('2025.json', {}),
}

# Historical bloc labels used by one cycle only
BLOC_ALIASES = {
    'BJP+': 'NDA',
}

DEFAULT_BASE_URL = os.environ.get('WARD_RESULTS_BASE_URL', '')

HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Ward Results ETL) Python/3',
}

_LEADING_INT = re.compile(r'\s*(\d+)')


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_int_safe(val):
    """Parse a vote count such as '1,709' into 1709.

    Numbers pass through unchanged. Empty values and anything without a
    leading run of digits give 0, so signed text such as '-5' is 0 votes.
    """
    if isinstance(val, bool):
        return 0
    if isinstance(val, (int, float)):
        return val
    if not val:
        return 0
    m = _LEADING_INT.match(str(val).replace(',', ''))
    if not m:
        return 0
    return int(m.group(1))


def normalise_ward_name(name):
    """Join key for a ward across cycles (trimmed, lower-cased)."""
    if not isinstance(name, str):
        return None
    return name.strip().lower()


def normalise_bloc_alias(label):
    return BLOC_ALIASES.get(label, label)


def normalise_2015_aliases(data):
    """Return a copy of the 2015 ward list with 'BJP+' rewritten to 'NDA'.

    Applied to the ward's own PartyGroup and to every candidate row.
    """
    if not isinstance(data, list):
        return []
    out = []
    for ward in data:
        if not isinstance(ward, dict):
            out.append(ward)
            continue
        ward = dict(ward)
        if 'PartyGroup' in ward:
            ward['PartyGroup'] = normalise_bloc_alias(ward['PartyGroup'])
        if isinstance(ward.get('popup_table'), list):
            rows = []
            for c in ward['popup_table']:
                if isinstance(c, dict) and 'PartyGroup' in c:
                    c = dict(c, PartyGroup=normalise_bloc_alias(c['PartyGroup']))
                rows.append(c)
            ward['popup_table'] = rows
        out.append(ward)
    return out


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_json_file(path, default):
    """Load a JSON document, falling back to a copy of default.

    Missing files, unreadable files, invalid JSON and documents of the wrong
    top-level type all degrade to the default.
    """
    if not os.path.exists(path):
        log.warning(f'{os.path.basename(path)} not found, using empty data')
        return copy.deepcopy(default)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f'Could not read {path}: {e}')
        return copy.deepcopy(default)
    except json.JSONDecodeError as e:
        log.warning(f'Invalid JSON in {path}: {e}')
        return copy.deepcopy(default)
    if not isinstance(data, type(default)):
        log.warning(f'{os.path.basename(path)}: expected {type(default).__name__}, '
                    f'got {type(data).__name__}')
        return copy.deepcopy(default)
    return data


def load_cycle_datasets(data_dir=None):
    """Load all three cycle files concurrently.

    Returns {'2015': [...], '2020': [...], '2025': {...}}. Each file defaults
    independently so one bad file never blocks the others.
    """
    data_dir = data_dir or os.getcwd()
    with ThreadPoolExecutor(max_workers=len(CYCLES)) as ex:
        futures = {
            cycle: ex.submit(load_json_file, os.path.join(data_dir, fname), default)
            for cycle, (fname, default) in CYCLE_FILES.items()
        }
        datasets = {cycle: fut.result() for cycle, fut in futures.items()}

    for cycle in CYCLES:
        log.debug(f'  {cycle}: {len(datasets[cycle])} records')
    return datasets


def download_cycle_files(base_url, data_dir, force=False):
    """Download {base_url}/{cycle}.json into data_dir if not cached.

    A failed download is logged and skipped; that cycle then loads as empty.
    """
    os.makedirs(data_dir, exist_ok=True)
    written = []
    for cycle in CYCLES:
        fname = CYCLE_FILES[cycle][0]
        path = os.path.join(data_dir, fname)
        if os.path.exists(path) and not force:
            size_kb = os.path.getsize(path) / 1024
            log.info(f'  {fname} cached ({size_kb:.1f}KB)')
            continue
        url = f'{base_url.rstrip("/")}/{fname}'
        try:
            resp = requests.get(url, headers=HEADERS, timeout=30)
            resp.raise_for_status()
        except requests.RequestException as e:
            log.warning(f'  Download failed for {url}: {e}')
            continue
        with open(path, 'wb') as f:
            f.write(resp.content)
        log.info(f'  Downloaded {fname} ({len(resp.content) / 1024:.1f}KB)')
        written.append(path)
    return written
