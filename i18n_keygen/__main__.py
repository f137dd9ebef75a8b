from i18n_keygen.cli import main

if __name__ == "__main__":
    main()
