# Import every model so Base.metadata sees all tables (Alembic autogenerate, create_all)
from melhik.models.religion import Religion  # noqa: F401
from melhik.models.topic import Topic  # noqa: F401
from melhik.models.topic_detail import TopicDetail  # noqa: F401
from melhik.models.user import User  # noqa: F401
