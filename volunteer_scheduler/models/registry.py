"""
Model registry exposed as a Flask extension

Model classes are produced by factory functions and bound to the shared
``db.Model`` metadata, so they can only be built once per process. The
registry keeps that single set and hands it to every app created by the
factory (the test suite creates one per session, gunicorn one per worker).

Usage:
    from volunteer_scheduler.models import get_models

    ScheduleDetail = get_models()['ScheduleDetail']
"""
from flask import current_app
from typing import Callable, Dict, Any


# Every service and blueprint indexes the models dict by these names
REQUIRED_MODELS = (
    'User', 'Team', 'TeamRole', 'TeamMember', 'Event', 'Schedule',
    'ScheduleDetail', 'AvailabilityRule', 'SwapRequest', 'Notification',
)


class ModelRegistry:
    """Holds the model classes and binds them to each Flask app"""

    def __init__(self):
        self.models: Dict[str, Any] = {}

    def build(self, db, factory: Callable[[Any], Dict[str, Any]]) -> Dict[str, Any]:
        """
        Build the model classes on first call; later calls return the same set.

        Raises:
            RuntimeError: If the factory does not produce every required model
        """
        if not self.models:
            models = factory(db)
            missing = [name for name in REQUIRED_MODELS if name not in models]
            if missing:
                raise RuntimeError(f"Model factory did not build: {', '.join(missing)}")
            self.models = models
        return self.models

    def init_app(self, app):
        app.extensions['models'] = self


model_registry = ModelRegistry()


def get_models() -> Dict[str, Any]:
    """
    Model classes registered on the current app

    Raises:
        RuntimeError: If the registry was never bound to the app
    """
    registry = current_app.extensions.get('models')
    if registry is None or not registry.models:
        raise RuntimeError(
            "ModelRegistry not initialized. "
            "Ensure model_registry.init_app(app) is called during app setup."
        )
    return registry.models
