from .overlay import main

raise SystemExit(main())
