"""Error taxonomy for deck generation.

Repository and serialization errors are fatal for one invocation.
Capability errors stay inside one segment and are retried, and
CapabilityUnavailableError switches the whole deck to the fallback renderer.
"""


#============================================
class DeckError(RuntimeError):
	"""
	Base class for every error raised by the deck pipeline.
	"""


#============================================
class RepositoryError(DeckError):
	"""
	Raised when the working directory is not a readable git repository.
	"""


#============================================
class NotFoundError(DeckError):
	"""
	Raised when the selected starting commit is not in HEAD history.
	"""


#============================================
class EmptyRangeError(DeckError):
	"""
	Raised when there are no commits to build a deck from.
	"""


#============================================
class CapabilityUnavailableError(DeckError):
	"""
	Raised when the LLM capability is disabled or cannot be reached.
	"""


#============================================
class CapabilityError(DeckError):
	"""
	Base class for one failed or malformed LLM capability call.
	"""


#============================================
class SchemaError(CapabilityError):
	"""
	Raised when an LLM response does not match the slide record shape.
	"""


#============================================
class CapabilityCallError(CapabilityError):
	"""
	Raised when an LLM call fails outright.
	"""


#============================================
class GenerationCancelled(DeckError):
	"""
	Raised when the user aborts between two segments.
	"""


#============================================
class SerializationError(DeckError):
	"""
	Raised when the slide deck cannot be written to disk.
	"""

	def __init__(self, message: str, path: str):
		super().__init__(f"{message}: {path}")
		self.path = path
