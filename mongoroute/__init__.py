# describe the project
"""
mongoroute exposes pydantic-described MongoDB collections through generic FastAPI CRUD routes.

Features:
- One registry of models, each bound to a Motor collection and a pydantic document schema.
- List, one, create, update and delete handlers answering with a uniform JSON envelope.
- Keyword search over the text fields of a schema, with paging and sorting from the query string.
- Population of reference fields from the referenced collection at read time.
- Localized error messages and structured error logging.

Usage:
1. Declare document schemas on top of `MakeModel()`.
2. Register them on a `ModelRegistry` inside `create_app(register_models=...)`.
3. Serve the app with uvicorn; see `fast.py`.
"""
__VERSION__ = "0.1.0"


# make the imports for library users easier
from .schemas.core import ModelGenerator as Model
from .schemas.fields import password_field, ref_field, refs_field
from .core.model import ModelRegistry as Registry

MakeModel = Model.make_model
