from lockpatch.cli import main

raise SystemExit(main())
