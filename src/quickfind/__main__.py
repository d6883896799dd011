from quickfind.cli import main


raise SystemExit(main())
