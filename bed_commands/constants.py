# Status Keys
SENT = "sent"
VALIDATION_FAILED = "validation_failed"
TRANSPORT_FAILED = "transport_failed"

# Dispatch Messages
SENT_MESSAGE = "Command '{action}' sent to bed '{bed_id}'."
VALIDATION_FAILED_MESSAGE = "Command '{action}' rejected: {error}"
TRANSPORT_FAILED_MESSAGE = "Command '{action}' could not be delivered: {reason}"

# Generic Messages
NO_COMMANDS = "No commands were extracted from the instruction."
DEFAULT_INSTRUCTION = "Planted tomatoes in row 1..."
