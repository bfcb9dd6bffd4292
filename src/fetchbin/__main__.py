from fetchbin.cli import main

raise SystemExit(main())
