from . import crud_user
from . import crud_event
from . import crud_artist
from . import crud_cue
from . import crud_broadcast
from . import crud_show_order
