#!/usr/bin/env python3
"""
corporation_stats.py — Corporation-wide summary of the unified ward list

Seats and votes by bloc for every cycle, the closest 2025 contests, and the
wards whose winning bloc changed between 2020 and 2025.
"""

import logging

from ward_data import CYCLES

log = logging.getLogger('CorporationStats')

BLOCS = ('LDF', 'UDF', 'NDA', 'OTHER')

# First match wins. (bloc, substrings, exact labels), all upper-case.
BLOC_RULES = (
    ('LDF', ('LDF',), ('CPI(M)', 'CPI')),
    ('UDF', ('UDF',), ('INC',)),
    ('NDA', ('NDA',), ('BJP',)),
)

CLOSEST_FIGHTS_LIMIT = 10
PREVIOUS_CYCLE, LATEST_CYCLE = CYCLES[-2], CYCLES[-1]


def identify_party(party_str):
    """Classify a party or alliance label into LDF, UDF, NDA or OTHER."""
    if not party_str:
        return 'OTHER'
    p = str(party_str).upper()
    for bloc, contains, exact in BLOC_RULES:
        if any(s in p for s in contains) or p in exact:
            return bloc
    return 'OTHER'


def empty_stats():
    return {
        'seats': {year: {b: 0 for b in BLOCS} for year in CYCLES},
        'votes': {year: dict({b: 0 for b in BLOCS}, TOTAL=0) for year in CYCLES},
        'closest_fights_2025': [],
        'flipped_wards': [],
    }


def get_corporation_stats(unified_data):
    """Aggregate seats, votes, closest fights and flips from the ward list."""
    stats = empty_stats()

    for ward in unified_data:
        for year in CYCLES:
            result = ward.get(f'result_{year}')
            if not result:
                continue
            stats['seats'][year][identify_party(result['party'])] += 1
            for cand in result['candidates']:
                bloc = identify_party(cand['party'])
                stats['votes'][year][bloc] += cand['votes']
                stats['votes'][year]['TOTAL'] += cand['votes']

        latest = ward.get(f'result_{LATEST_CYCLE}')
        if latest and latest['lead'] is not None:
            runner_up = latest['candidates'][1] if len(latest['candidates']) > 1 else {}
            stats['closest_fights_2025'].append({
                'ward': ward['ward_name'],
                'winner': latest['winner_name'],
                'party': latest['party'],
                'lead': latest['lead'],
                'runner_up': runner_up.get('name') or 'N/A',
                'runner_up_party': runner_up.get('party') or 'N/A',
            })

        previous = ward.get(f'result_{PREVIOUS_CYCLE}')
        if previous and latest:
            was, now = identify_party(previous['party']), identify_party(latest['party'])
            if was != now:
                stats['flipped_wards'].append({
                    'ward': ward['ward_name'],
                    'from': was,
                    'to': now,
                    'original_party': previous['party'],
                    'new_party': latest['party'],
                    'margin_2025': latest['lead'],
                })

    stats['closest_fights_2025'].sort(key=lambda f: f['lead'])
    stats['closest_fights_2025'] = stats['closest_fights_2025'][:CLOSEST_FIGHTS_LIMIT]
    stats['flipped_wards'].sort(key=lambda f: f['margin_2025'] or 0, reverse=True)

    log.debug(f'  {len(stats["flipped_wards"])} wards changed hands {PREVIOUS_CYCLE}->{LATEST_CYCLE}')
    return stats


def summarise_stats(stats):
    """One report line per cycle plus flip/closest counts."""
    lines = []
    for year in CYCLES:
        seats = stats['seats'][year]
        votes = stats['votes'][year]
        if not sum(seats.values()):
            lines.append(f'{year}: no results')
            continue
        parts = []
        for bloc in BLOCS:
            share = votes[bloc] / votes['TOTAL'] * 100 if votes['TOTAL'] else 0
            parts.append(f'{bloc} {seats[bloc]} ({share:.1f}%)')
        lines.append(f'{year}: ' + ', '.join(parts))
    line = f'{len(stats["flipped_wards"])} wards flipped since {PREVIOUS_CYCLE}'
    if stats['closest_fights_2025']:
        closest = stats['closest_fights_2025'][0]
        line += f', closest {LATEST_CYCLE} lead {closest["lead"]} ({closest["ward"]})'
    lines.append(line)
    return lines
