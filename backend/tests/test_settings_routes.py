from servicequeue import get_db
from servicequeue.constants import settings as keys
from servicequeue.services.settings import SettingsProvider
from tests.test_utils_seed import ensure_user
from tests.test_lifecycle_helpers import jwt_headers

ADMIN = ['ADMIN.SETTINGS.MANAGE']


def _admin_headers():
    return jwt_headers(ensure_user('admin@example.com').id, ADMIN)


def test_public_settings_need_no_token(client):
    SettingsProvider(get_db()).seed_defaults()
    resp = client.get('/settings/public')
    assert resp.status_code == 200
    public_keys = {s['key'] for s in resp.get_json()['data']}
    assert keys.MAX_TICKETS_PER_DAY in public_keys
    assert keys.CLEANUP_RETENTION_DAYS not in public_keys


def test_admin_reads(client):
    SettingsProvider(get_db()).seed_defaults()
    headers = _admin_headers()
    assert len(client.get('/settings', headers=headers).get_json()['data']) == len(keys.DEFAULT_SETTINGS)
    assert len(client.get('/settings/category/waiting_list', headers=headers).get_json()['data']) == 5
    one = client.get(f'/settings/key/{keys.JOB_SCHEDULE}', headers=headers).get_json()
    assert one['value'] == '0 0 * * *'
    assert client.get('/settings/key/nope', headers=headers).status_code == 404


def test_update_setting_changes_capacity(client):
    SettingsProvider(get_db()).seed_defaults()
    headers = _admin_headers()
    resp = client.put(f'/settings/key/{keys.MAX_TICKETS_PER_DAY}', json={'value': 5}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['value'] == '5'
    assert SettingsProvider(get_db()).max_tickets_per_day() == 5
    resp = client.put(f'/settings/key/{keys.MAX_TICKETS_PER_DAY}', json={'value': 'many'}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()['error']['kind'] == 'validation_error'
    assert client.put(f'/settings/key/{keys.MAX_TICKETS_PER_DAY}', json={}, headers=headers).status_code == 400


def test_create_and_delete_setting(client):
    headers = _admin_headers()
    resp = client.post('/settings', json={'key': 'business.bays', 'value': '4', 'type': 'int', 'category': 'business'}, headers=headers)
    assert resp.status_code == 201
    sid = resp.get_json()['id']
    assert client.post('/settings', json={'key': 'business.bays', 'value': '4', 'type': 'int'}, headers=headers).status_code == 400
    assert client.delete(f'/settings/{sid}', headers=headers).get_json() == {'deleted': True, 'id': sid}
    assert client.delete(f'/settings/{sid}', headers=headers).status_code == 404
