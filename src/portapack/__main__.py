from portapack.cli import main

raise SystemExit(main())
