from lambdapack.cli import main

raise SystemExit(main())
