__version__ = (0, 3, 1)


# Make a couple frequently used things available right here.
from .env import Environment
from .tasks import Context, make_tasks
