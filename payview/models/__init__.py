from payview.models.profile import Profile
from payview.models.collection import FileCollection
from payview.models.file import File
from payview.models.transaction import Transaction

# add ALL models here
