import sys

from notesflow.app.main import main

sys.exit(main())
