from .locks import KeyedLock as KeyedLock
from .passive_generator import PassiveGenerator as PassiveGenerator
