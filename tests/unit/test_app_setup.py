"""
Unit tests for configuration selection, the model registry and the error
decorators.
"""
import pytest
from sqlalchemy.exc import OperationalError

from volunteer_scheduler.config import (
    DevelopmentConfig, ProductionConfig, TestingConfig, get_config,
)
from volunteer_scheduler.error_handlers import (
    DatabaseException, ScheduleConflictException, ValidationException,
    handle_errors, with_db_transaction,
)
from volunteer_scheduler.models.registry import REQUIRED_MODELS, ModelRegistry


class TestConfig:

    @pytest.mark.unit
    def test_named_and_unknown_configs(self):
        assert get_config('testing') is TestingConfig
        assert get_config('production') is ProductionConfig
        assert get_config('staging') is DevelopmentConfig

    @pytest.mark.unit
    def test_testing_config_keeps_conflict_flags_off(self):
        assert TestingConfig.CONFLICT_MATCH_LOCATION is False
        assert TestingConfig.SWAP_APPROVAL_CHECKS_CONFLICTS is False
        assert TestingConfig.LOG_FILE == ''

    @pytest.mark.unit
    def test_production_rejects_short_secret(self, monkeypatch):
        monkeypatch.setenv('SECRET_KEY', 'too-short')
        with pytest.raises(ValueError, match='at least 32'):
            ProductionConfig.validate()

    @pytest.mark.unit
    def test_production_accepts_long_secret(self, monkeypatch):
        monkeypatch.setenv('SECRET_KEY', 'x' * 48)
        ProductionConfig.validate()


class TestModelRegistry:

    @pytest.mark.unit
    def test_incomplete_factory_is_rejected(self):
        registry = ModelRegistry()
        with pytest.raises(RuntimeError, match='ScheduleDetail'):
            registry.build(None, lambda db: {'User': object})
        assert registry.models == {}

    @pytest.mark.unit
    def test_models_are_built_once(self):
        registry = ModelRegistry()
        calls = []

        def factory(db):
            calls.append(db)
            return {name: type(name, (), {}) for name in REQUIRED_MODELS}

        first = registry.build('db', factory)
        second = registry.build('db', factory)

        assert first is second
        assert len(calls) == 1


class TestErrorDecorators:

    @pytest.mark.unit
    def test_conflict_renders_409_with_payload(self, app):
        conflict = {'scheduleDetail': {'id': 7}, 'schedule': {'id': 3}, 'role': None, 'team': None}

        @handle_errors
        def view():
            raise ScheduleConflictException('Volunteer already scheduled', conflict=conflict)

        with app.test_request_context('/api/schedule-details', method='POST'):
            response, status = view()

        assert status == 409
        body = response.get_json()
        assert body['error'] == 'ScheduleConflict'
        assert body['conflict']['scheduleDetail']['id'] == 7

    @pytest.mark.unit
    def test_validation_errors_are_listed(self):
        exc = ValidationException('Validation error', errors=[{'field': 'roleId', 'message': 'Required'}])
        assert exc.to_dict() == {
            'error': 'ValidationError',
            'message': 'Validation error',
            'status_code': 400,
            'errors': [{'field': 'roleId', 'message': 'Required'}],
        }

    @pytest.mark.unit
    def test_driver_error_becomes_database_exception(self, db):
        @with_db_transaction
        def view():
            raise OperationalError('INSERT INTO schedule_details', {}, Exception('disk I/O error'))

        with pytest.raises(DatabaseException):
            view()

    @pytest.mark.unit
    def test_unexpected_error_hides_details(self, app):
        @handle_errors
        def view():
            raise KeyError('volunteer_id')

        with app.test_request_context('/api/conflicts'):
            response, status = view()

        assert status == 500
        body = response.get_json()
        assert body['message'] == 'An unexpected error occurred'
        assert 'volunteer_id' not in body['message']
        assert body['error_id']
