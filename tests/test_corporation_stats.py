import pytest

from conftest import new_ward, old_ward
from corporation_stats import (
    CLOSEST_FIGHTS_LIMIT,
    empty_stats,
    get_corporation_stats,
    identify_party,
    summarise_stats,
)
from ward_results_etl import reconcile


@pytest.mark.parametrize('label, bloc', [
    ('LDF', 'LDF'),
    ('ldf independent', 'LDF'),
    ('CPI(M)', 'LDF'),
    ('cpi', 'LDF'),
    ('UDF', 'UDF'),
    ('INC', 'UDF'),
    ('inc', 'UDF'),
    ('NDA', 'NDA'),
    ('BJP', 'NDA'),
    ('BJP+', 'OTHER'),
    ('IUML', 'OTHER'),
    ('CPI(ML)', 'OTHER'),
    ('', 'OTHER'),
    (None, 'OTHER'),
])
def test_identify_party(label, bloc):
    assert identify_party(label) == bloc


def test_empty_input_gives_zero_stats():
    stats = get_corporation_stats([])
    assert stats == empty_stats()
    assert stats['votes']['2025'] == {'LDF': 0, 'UDF': 0, 'NDA': 0, 'OTHER': 0, 'TOTAL': 0}


def test_seats_and_votes(sample_datasets):
    stats = get_corporation_stats(reconcile(*sample_datasets))

    assert stats['seats']['2015'] == {'LDF': 1, 'UDF': 0, 'NDA': 1, 'OTHER': 0}
    assert stats['seats']['2020'] == {'LDF': 1, 'UDF': 1, 'NDA': 1, 'OTHER': 0}
    assert stats['seats']['2025'] == {'LDF': 0, 'UDF': 0, 'NDA': 3, 'OTHER': 0}

    # BJP+ in 2015 counts as NDA
    assert stats['votes']['2015'] == {'LDF': 2100, 'UDF': 2200, 'NDA': 3400, 'OTHER': 0, 'TOTAL': 7700}
    assert stats['votes']['2025']['TOTAL'] == 2600 + 2550 + 1800 + 1000 + 5000 + 4500
    for year in ('2015', '2020', '2025'):
        votes = stats['votes'][year]
        assert votes['TOTAL'] == sum(v for k, v in votes.items() if k != 'TOTAL')


def test_closest_fights(sample_datasets):
    fights = get_corporation_stats(reconcile(*sample_datasets))['closest_fights_2025']
    assert [f['ward'] for f in fights] == ['KAZHAKUTTOM', 'KOWDIAR', 'VAZHUTHACAUD']
    assert fights[0] == {
        'ward': 'KAZHAKUTTOM',
        'winner': 'Kumar',
        'party': 'BJP',
        'lead': 50,
        'runner_up': 'Lekha',
        'runner_up_party': 'CPI(M)',
    }


def test_closest_fights_capped_and_sorted():
    data_2025 = {
        f'{i:03d}': new_ward(f'Ward {i}', [('A', 'LDF', str(1000 + 37 * i), 'Won'), ('B', 'UDF', '1000', '')])
        for i in range(15)
    }
    data_2025['099'] = new_ward('Walkover', [('Solo', 'LDF', '10', 'Won')])
    fights = get_corporation_stats(reconcile([], [], data_2025))['closest_fights_2025']
    assert len(fights) == CLOSEST_FIGHTS_LIMIT
    leads = [f['lead'] for f in fights]
    assert leads == sorted(leads)
    assert leads[0] == 0
    assert 'WALKOVER' not in [f['ward'] for f in fights]


def test_flipped_wards(sample_datasets):
    flipped = get_corporation_stats(reconcile(*sample_datasets))['flipped_wards']
    # Kazhakuttom LDF->NDA (lead 50); Vazhuthacaud stays NDA; Pettah has no 2025 result
    assert flipped == [{
        'ward': 'KAZHAKUTTOM',
        'from': 'LDF',
        'to': 'NDA',
        'original_party': 'LDF',
        'new_party': 'BJP',
        'margin_2025': 50,
    }]


def test_flipped_wards_sorted_by_margin_desc():
    data_2020 = [old_ward(name, [('X', 'UDF', '10'), ('Y', 'LDF', '5')]) for name in ('A', 'B', 'C')]
    data_2025 = {
        '1': new_ward('A', [('P', 'BJP', '300', 'Won'), ('Q', 'INC', '100', '')]),
        '2': new_ward('B', [('P', 'LDF', '900', 'Won'), ('Q', 'INC', '100', '')]),
        '3': new_ward('C', [('P', 'LDF', '10', 'Won'), ('Q', 'INC', '60', '')]),
    }
    flipped = get_corporation_stats(reconcile([], data_2020, data_2025))['flipped_wards']
    assert [(f['ward'], f['margin_2025']) for f in flipped] == [('B', 800), ('A', 200), ('C', -50)]


def test_flip_uses_same_classifier_for_both_cycles():
    # 'CPI(M)' in 2020 and 'LDF' in 2025 are the same bloc
    wards = reconcile([], [old_ward('X', [('A', 'CPI(M)', '10')])],
                      {'1': new_ward('X', [('B', 'LDF', '10', 'Won')])})
    assert get_corporation_stats(wards)['flipped_wards'] == []


def test_summarise_stats(sample_datasets):
    lines = summarise_stats(get_corporation_stats(reconcile(*sample_datasets)))
    assert lines[0].startswith('2015: LDF 1')
    assert lines[-1] == '1 wards flipped since 2020, closest 2025 lead 50 (KAZHAKUTTOM)'


def test_summarise_empty_stats():
    lines = summarise_stats(empty_stats())
    assert lines == ['2015: no results', '2020: no results', '2025: no results',
                     '0 wards flipped since 2020']
