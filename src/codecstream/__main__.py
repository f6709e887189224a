from codecstream.cli import main

raise SystemExit(main())
