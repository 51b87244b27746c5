from sitelinks.cli import main

raise SystemExit(main())
