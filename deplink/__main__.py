from deplink.cli import main

raise SystemExit(main())
