from mirrorwalk.interfaces.cli import main

raise SystemExit(main())
