from .silc import main

raise SystemExit(main())
