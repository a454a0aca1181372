import sys

from b64url_stream.cli import main

sys.exit(main())
