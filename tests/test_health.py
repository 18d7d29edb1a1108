import os


def test_health(client):
    response = client.get('/api/health')

    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] == 'OK'
    assert body['timestamp']


def test_unknown_route(client):
    response = client.get('/api/nope')

    assert response.status_code == 404
    assert response.get_json() == {'error': 'Route not found'}


def test_unhandled_error(app):
    @app.route('/api/boom')
    def boom():
        raise RuntimeError('boom')

    response = app.test_client().get('/api/boom')

    assert response.status_code == 500
    # DEBUG 가 아니면 내부 메시지는 숨김
    assert response.get_json() == {'error': 'Internal Server Error', 'message': 'Something went wrong'}


def test_requests_are_logged_to_file(app, tmp_path):
    app.test_client().get('/api/health')

    log_file = tmp_path / 'logs' / 'server.log'
    assert os.path.exists(log_file)
    assert 'GET /api/health 200' in log_file.read_text(encoding='utf-8')
