from petstore import db
from petstore.errors import NotFoundError


def get_or_404(model, object_id, label=None):
    obj = db.session.get(model, object_id)
    if obj is None:
        raise NotFoundError(f'{label or model.__name__} not found')
    return obj
