"""
Central configuration for ignore file processing
"""

GITIGNORE_FILENAME = ".gitignore"

# Tool specific ignore file, used where no .gitignore applies
ARKIGNORE_FILENAME = ".arkignore"

# Never descended into by any walker
GIT_DIRNAME = ".git"

# Label used for rules supplied programmatically rather than read from a file
INLINE_SOURCE = "<inline>"
