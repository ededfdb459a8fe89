import json

import pytest


def old_ward(name, rows, party_group=None):
    ward = {
        'Ward': name,
        'popup_table': [{'Name': n, 'PartyGroup': p, 'Vote': v} for n, p, v in rows],
    }
    if party_group is not None:
        ward['PartyGroup'] = party_group
    return ward


def new_ward(name, rows):
    return [
        {'Ward_Name': name, 'Candidate_Name': n, 'Party': p, 'Votes': v, 'Status': s}
        for n, p, v, s in rows
    ]


@pytest.fixture
def sample_datasets():
    data_2015 = [
        old_ward('Kazhakuttom', [('Anil', 'LDF', '2,100'), ('Biju', 'BJP+', '1,900'),
                                 ('Chandran', 'UDF', '800')], party_group='LDF'),
        old_ward('Vazhuthacaud', [('Devi', 'BJP+', '1,500'), ('Elsy', 'UDF', '1,400')],
                 party_group='BJP+'),
    ]
    data_2020 = [
        old_ward('Kazhakuttom', [('Fathima', 'LDF', '2,500'), ('Gopan', 'NDA', '2,000')]),
        old_ward('Vazhuthacaud', [('Hari', 'NDA', '1,700'), ('Indu', 'LDF', '1,650')]),
        old_ward('Pettah', [('Jose', 'UDF', '1,200')]),
    ]
    data_2025 = {
        '001': new_ward('Kazhakuttom', [('Kumar', 'BJP', '2,600', 'Won'),
                                        ('Lekha', 'CPI(M)', '2,550', 'Lost')]),
        '002': new_ward('Vazhuthacaud', [('Mini', 'BJP', '1,800', 'Won'),
                                         ('Nair', 'INC', '1,000', 'Lost')]),
        '003': new_ward('Kowdiar', [('A', 'BJP', '5,000', 'Won'), ('B', 'INC', '4,500', '')]),
    }
    return data_2015, data_2020, data_2025


@pytest.fixture
def data_dir(tmp_path, sample_datasets):
    for fname, data in zip(('2015.json', '2020.json', '2025.json'), sample_datasets):
        (tmp_path / fname).write_text(json.dumps(data), encoding='utf-8')
    return tmp_path
