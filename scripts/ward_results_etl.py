#!/usr/bin/env python3
"""
ward_results_etl.py — Ward results ETL for the Thiruvananthapuram Corporation

Reconciles three election cycles of per-ward results into one list of wards,
then hands it to corporation_stats.py for the corporation-wide summary.

Sources (in the data directory):
    2015.json   list of ward records, candidates under 'popup_table'
    2020.json   same shape as 2015
    2025.json   {ward_id: [candidate, ...]}, winner flagged with Status 'Won'

Usage:
    python3 ward_results_etl.py                               # Read ./20xx.json
    python3 ward_results_etl.py --data-dir raw/ --output-dir data/
    python3 ward_results_etl.py --download --base-url https://example.org/results
    python3 ward_results_etl.py --dry-run                     # Report only

Output: {output_dir}/wards.json and {output_dir}/corporation_stats.json
"""

import argparse
import json
import logging
import os
import sys
import unicodedata

from corporation_stats import get_corporation_stats, summarise_stats
from ward_data import (
    CYCLES,
    DEFAULT_BASE_URL,
    download_cycle_files,
    load_cycle_datasets,
    normalise_2015_aliases,
    normalise_ward_name,
    parse_int_safe,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
)
log = logging.getLogger('WardResultsETL')

# ── Paths ────────────────────────────────────────────────────────────
DATA_DIR = os.environ.get('WARD_RESULTS_DATA_DIR', '')
OUTPUT_DIR = 'data'

# Letters NFKD leaves whole, filed under their base letters (after casefold)
LETTER_FOLDS = str.maketrans({
    'æ': 'ae',
    'ø': 'o',
    'œ': 'oe',
    'đ': 'd',
    'ð': 'd',
    'þ': 'th',
    'ł': 'l',
    'ı': 'i',
})


# ---------------------------------------------------------------------------
# Per-ward results
# ---------------------------------------------------------------------------

def _add_percentages(candidates):
    """Set each candidate's share of the ward total; returns the total."""
    total_votes = sum(c['votes'] for c in candidates)
    for c in candidates:
        c['percent'] = f'{c["votes"] / total_votes * 100:.1f}' if total_votes > 0 else '0.0'
    return total_votes


def _by_votes(candidates):
    return sorted(candidates, key=lambda c: c['votes'], reverse=True)


def _result(top, second, total_votes, candidates):
    return {
        'winner_name': top['name'],
        'party': top['party'],
        'votes': top['votes'],
        'lead': top['votes'] - second['votes'] if second else None,
        'total_votes': total_votes,
        'candidates': candidates,
    }


def process_old_format(ward_data):
    """Winner, lead and candidate shares from a 2015/2020 ward record.

    Returns None when the record has no candidate table.
    """
    if not isinstance(ward_data, dict):
        return None
    table = ward_data.get('popup_table')
    if not isinstance(table, list) or not table:
        return None

    candidates = _by_votes([
        {
            'name': c.get('Name'),
            'party': c.get('PartyGroup'),
            'votes': parse_int_safe(c.get('Vote')),
        }
        for c in table if isinstance(c, dict)
    ])
    total_votes = _add_percentages(candidates)

    top = candidates[0] if candidates else None
    second = candidates[1] if len(candidates) > 1 else None
    if not top:
        return None
    return _result(top, second, total_votes, candidates)


def process_new_format(candidates_arr):
    """Winner, lead and candidate shares from a 2025 candidate list.

    The candidate flagged 'Won' is the winner even if another candidate
    polled more (results under dispute), so lead can be negative.
    """
    if not isinstance(candidates_arr, list) or not candidates_arr:
        return None

    candidates = [
        {
            'name': c.get('Candidate_Name'),
            'party': c.get('Party'),
            'votes': parse_int_safe(c.get('Votes')),
            'status': c.get('Status'),
        }
        for c in candidates_arr if isinstance(c, dict)
    ]
    total_votes = _add_percentages(candidates)

    top = next((c for c in candidates if c['status'] == 'Won'), None)
    if top is None:
        candidates = _by_votes(candidates)
        top = candidates[0] if candidates else None
    if top is None:
        return None

    # Runner-up is the best of everyone except the winner, not simply 2nd place
    remaining = _by_votes([c for c in candidates if c is not top])
    second = remaining[0] if remaining else None

    return _result(top, second, total_votes, _by_votes(candidates))


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------

def index_old_format(data):
    """Map normalised ward name -> raw ward record."""
    index = {}
    if not isinstance(data, list):
        return index
    for ward in data:
        if not isinstance(ward, dict):
            continue
        key = normalise_ward_name(ward.get('Ward'))
        if key:
            index[key] = ward
    return index


def _first_ward_name(candidates):
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        name = candidates[0].get('Ward_Name')
        if isinstance(name, str) and name.strip():
            return name
    return None


def index_new_format(data):
    """Map normalised ward name -> 2025 candidate list.

    The ward id keys are only meaningful within 2025, so the name is read off
    the first candidate. Empty or malformed lists are skipped.
    """
    index = {}
    if not isinstance(data, dict):
        return index
    for ward_id, candidates in data.items():
        name = _first_ward_name(candidates)
        if name is None:
            log.debug(f'  Skipping 2025 ward id {ward_id}: no candidates')
            continue
        index[normalise_ward_name(name)] = candidates
    return index


def recover_ward_name(key, ward_2015, ward_2020, cands_2025):
    """Display name from the newest cycle that has one, else the key."""
    name = _first_ward_name(cands_2025)
    if name:
        return name
    for ward in (ward_2020, ward_2015):
        if ward and isinstance(ward.get('Ward'), str) and ward['Ward'].strip():
            return ward['Ward']
    return key


def ward_sort_key(name):
    """Alphabetical key that files accented letters with their base letter."""
    decomposed = unicodedata.normalize('NFKD', name)
    folded = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (folded.casefold().translate(LETTER_FOLDS), name)


# ---------------------------------------------------------------------------
# Reconcile
# ---------------------------------------------------------------------------

def reconcile(data_2015, data_2020, data_2025):
    """Union the three cycles into one alphabetical list of wards."""
    map_2015 = index_old_format(normalise_2015_aliases(data_2015))
    map_2020 = index_old_format(data_2020)
    map_2025 = index_new_format(data_2025)

    all_keys = set(map_2015) | set(map_2020) | set(map_2025)

    unified = []
    for key in all_keys:
        w2015 = map_2015.get(key)
        w2020 = map_2020.get(key)
        c2025 = map_2025.get(key)

        name = recover_ward_name(key, w2015, w2020, c2025)
        ward = {
            'ward_name': name.upper(),
            'ward_name_lower': name.lower(),
            'result_2015': process_old_format(w2015),
            'result_2020': process_old_format(w2020),
            'result_2025': process_new_format(c2025),
        }

        latest = ward['result_2025']
        if latest and latest['lead'] is not None and latest['lead'] < 0:
            log.warning(f'  {ward["ward_name"]}: declared winner {latest["winner_name"]} '
                        f'trails by {-latest["lead"]} votes')
        unified.append(ward)

    unified.sort(key=lambda w: ward_sort_key(w['ward_name']))
    return unified


def get_unified_data(data_dir=None):
    """Load the three cycle files and reconcile them."""
    datasets = load_cycle_datasets(data_dir)
    return reconcile(datasets['2015'], datasets['2020'], datasets['2025'])


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def write_json(path, data):
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    size_kb = os.path.getsize(path) / 1024
    log.info(f'  Written {path} ({size_kb:.1f}KB)')


def run(data_dir, output_dir, dry_run=False):
    """Reconcile, summarise and (unless dry_run) write both outputs."""
    log.info(f'Reading results from {data_dir}')
    wards = get_unified_data(data_dir)
    stats = get_corporation_stats(wards)

    counts = {c: sum(1 for w in wards if w[f'result_{c}']) for c in CYCLES}
    log.info(f'  {len(wards)} wards ({", ".join(f"{c}: {n}" for c, n in counts.items())})')
    for line in summarise_stats(stats):
        log.info(f'  {line}')

    if dry_run:
        log.info('Dry run, nothing written')
        return wards, stats

    write_json(os.path.join(output_dir, 'wards.json'), wards)
    write_json(os.path.join(output_dir, 'corporation_stats.json'), stats)
    return wards, stats


def main(argv=None):
    parser = argparse.ArgumentParser(description='Ward results ETL for the corporation')
    parser.add_argument('--data-dir', type=str, default=DATA_DIR or os.getcwd(),
                        help='Directory holding 2015.json, 2020.json, 2025.json')
    parser.add_argument('--output-dir', type=str, default=OUTPUT_DIR,
                        help='Where to write wards.json and corporation_stats.json')
    parser.add_argument('--download', action='store_true', help='Fetch the cycle files first')
    parser.add_argument('--base-url', type=str, default=DEFAULT_BASE_URL,
                        help='Base URL the cycle files are downloaded from')
    parser.add_argument('--force', action='store_true', help='Re-download cached files')
    parser.add_argument('--dry-run', action='store_true', help='Report without writing output')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.download:
        if not args.base_url:
            log.error('--download needs --base-url (or WARD_RESULTS_BASE_URL)')
            sys.exit(1)
        download_cycle_files(args.base_url, args.data_dir, force=args.force)

    run(args.data_dir, args.output_dir, dry_run=args.dry_run)
    log.info('Done.')


if __name__ == '__main__':
    main()
