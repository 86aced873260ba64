from catalog_rag.cli import main

main()
