from proofpack.cli import main

raise SystemExit(main())
