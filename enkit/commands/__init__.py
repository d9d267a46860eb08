# Import all command modules to ensure commands are registered.

import enkit.commands.help_commands  # noqa: F401
import enkit.commands.note_commands  # noqa: F401
